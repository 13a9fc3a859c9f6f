"""Repository-side records consumed by the resolvers.

These are read-only snapshots handed over by the entity/taxonomy
collaborators.  derivcast never stores or mutates them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TriggerEntity(BaseModel):
    """The content item whose mutation initiated a dispatch.

    ``fields`` maps a field name to the ids it references, e.g.
    ``{"field_media": [3, 4]}``.
    """

    model_config = ConfigDict(frozen=True)

    entity_type: str = "node"
    id: int
    bundle: str = ""
    uuid: str = ""
    title: str = ""
    fields: dict[str, list[int]] = {}


class Term(BaseModel):
    """A taxonomy entry carrying an external URI (a semantic tag)."""

    model_config = ConfigDict(frozen=True)

    tid: int
    name: str
    vocabulary: str = "tags"
    external_uri: str = ""


class FileRecord(BaseModel):
    """A stored file; ``uri`` is a stream-wrapper URI like ``public://a.tif``."""

    model_config = ConfigDict(frozen=True)

    fid: int
    filename: str
    uri: str
    mimetype: str = ""

    @property
    def scheme(self) -> str:
        return self.uri.split("://", 1)[0] if "://" in self.uri else ""

    @property
    def target(self) -> str:
        """Path portion of the stream-wrapper URI."""
        return self.uri.split("://", 1)[1] if "://" in self.uri else self.uri


class MediaItem(BaseModel):
    """A media artifact that references content entities.

    ``references`` maps a reference field name to the referenced entity
    ids; ``tags`` holds the term ids classifying the media's role.
    """

    model_config = ConfigDict(frozen=True)

    mid: int
    bundle: str = "image"
    name: str = ""
    tags: list[int] = []
    references: dict[str, list[int]] = {}
    source_fid: int | None = None


class FieldDescriptor(BaseModel):
    """Describes one entity-reference field on an entity type."""

    model_config = ConfigDict(frozen=True)

    name: str
    entity_type: str
    target_type: str


class Principal(BaseModel):
    """The acting user on whose behalf a dispatch runs."""

    model_config = ConfigDict(frozen=True)

    uid: int
    name: str
    roles: list[str] = []

    @property
    def is_anonymous(self) -> bool:
        return self.uid == 0
