"""Event builder: assembles the canonical event from resolved locators.

Content is built from the strategy's content model, never by copying the
configuration and deleting keys, so configuration-only fields (term URIs,
raw template, scheme) have no path into the payload.
"""

from __future__ import annotations

from typing import Any

from derivcast.core.resolver import Resolution
from derivcast.core.urls import UrlGenerator
from derivcast.models.entities import Principal, TriggerEntity
from derivcast.models.events import (
    Attachment,
    CanonicalEvent,
    EventContent,
    FieldMappingContent,
    FieldToFieldContent,
    SemanticTagContent,
)
from derivcast.models.task_config import (
    FieldMappingConfig,
    FieldToFieldConfig,
    SemanticTagConfig,
)


class EventBuilder:
    """Builds :class:`CanonicalEvent` instances.

    Parameters
    ----------
    urls:
        Produces the ``actor`` and ``object`` URIs.
    """

    def __init__(self, urls: UrlGenerator) -> None:
        self._urls = urls

    def build(
        self,
        config: Any,
        resolution: Resolution,
        entity: TriggerEntity,
        principal: Principal,
        *,
        file_upload_uri: str | None = None,
    ) -> CanonicalEvent:
        """Assemble the event for one dispatch.

        ``file_upload_uri`` is required for the semantic-tag strategy and
        ignored otherwise.
        """
        content = self.build_content(config, resolution, file_upload_uri=file_upload_uri)
        return CanonicalEvent(
            summary=config.event,
            actor=self._urls.principal_url(principal),
            entity=self._urls.entity_url(entity),
            attachment=Attachment(content=content.model_dump(mode="json")),
        )

    @staticmethod
    def build_content(
        config: Any,
        resolution: Resolution,
        *,
        file_upload_uri: str | None = None,
    ) -> EventContent:
        if isinstance(config, SemanticTagConfig):
            if not file_upload_uri:
                raise ValueError("semantic_tag events require a file_upload_uri")
            return SemanticTagContent(
                source_uri=resolution.source_locator,
                destination_uri=resolution.destination_locator,
                file_upload_uri=file_upload_uri,
                mimetype=config.mimetype,
                args=config.args,
            )
        if isinstance(config, FieldMappingConfig):
            return FieldMappingContent(
                source=resolution.source_locator,
                destination=resolution.destination_locator,
                bundle=resolution.bundle or config.bundle,
                mimetype=config.mimetype,
                args=config.args,
            )
        if isinstance(config, FieldToFieldConfig):
            return FieldToFieldContent(
                source=resolution.source_locator,
                destination=resolution.destination_locator,
                mimetype=config.mimetype,
                args=config.args,
            )
        raise TypeError(f"Unsupported task configuration: {type(config).__name__}")
