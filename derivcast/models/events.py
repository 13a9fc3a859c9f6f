"""Canonical "generate derivative" event models.

The top-level shape is fixed (an ActivityStreams-style ``Activity``); only
``attachment.content`` varies by strategy.  Content models forbid extra
keys so configuration-only fields cannot leak into the wire payload.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class SemanticTagContent(BaseModel):
    """What an image worker needs when media was located by semantic tag."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_uri: str
    destination_uri: str
    file_upload_uri: str
    mimetype: str
    args: str = ""


class FieldToFieldContent(BaseModel):
    """Field-to-field content: the worker reads and writes entity fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: str
    destination: str
    mimetype: str
    args: str = ""


class FieldMappingContent(FieldToFieldContent):
    """Field-to-field content plus the media bundle to create."""

    bundle: str


EventContent = Union[SemanticTagContent, FieldMappingContent, FieldToFieldContent]


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = "Object"
    media_type: str = Field(default="application/json", alias="mediaType")
    content: dict[str, Any]


class CanonicalEvent(BaseModel):
    """The structured message describing one derivative-generation task.

    Serialize with :meth:`to_wire`; field aliases (``object``,
    ``mediaType``) are only applied there.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = "Activity"
    summary: str
    actor: str
    entity: str = Field(alias="object")
    attachment: Attachment

    @property
    def content(self) -> dict[str, Any]:
        return self.attachment.content

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready payload exactly as consumers receive it."""
        return self.model_dump(mode="json", by_alias=True)
