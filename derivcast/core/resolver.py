"""Content resolution: source and destination locators per strategy.

Each strategy is a small class satisfying the ``ContentResolver``
protocol.  Strategies are looked up from a registry keyed by the task
configuration's ``strategy`` tag, so adding a strategy never touches the
dispatcher.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from derivcast.core.urls import UrlGenerator
from derivcast.errors import ResolutionError
from derivcast.models.entities import MediaItem, Term, TriggerEntity
from derivcast.models.task_config import (
    FieldMappingConfig,
    FieldToFieldConfig,
    SemanticTagConfig,
    Strategy,
)
from derivcast.repository import EntityIndex, MediaIndex, TermIndex

logger = logging.getLogger(__name__)

# Media type segment of the destination route for image derivatives.
DERIVATIVE_MEDIA_TYPE = "image"


class Resolution(BaseModel):
    """Result of resolving a trigger entity against a task configuration.

    ``media`` and ``derivative_term`` are only set by the semantic-tag
    strategy; they feed the path template context.
    """

    model_config = ConfigDict(frozen=True)

    source_locator: str
    destination_locator: str
    bundle: str | None = None
    media: MediaItem | None = None
    derivative_term: Term | None = None


@runtime_checkable
class ContentResolver(Protocol):
    """Resolves ``(source, destination)`` for one strategy."""

    def resolve(self, entity: TriggerEntity, config: Any) -> Resolution:
        """Raises ``ResolutionError`` when either side cannot be found."""
        ...


# ---------------------------------------------------------------------------
# Semantic-tag strategy
# ---------------------------------------------------------------------------


class SemanticTagResolver:
    """Finds the media tagged with the source term among media referencing
    the trigger entity, and routes the derivative back to the entity under
    the derivative term.
    """

    def __init__(
        self,
        terms: TermIndex,
        entities: EntityIndex,
        media: MediaIndex,
        urls: UrlGenerator,
    ) -> None:
        self._terms = terms
        self._entities = entities
        self._media = media
        self._urls = urls

    def resolve(self, entity: TriggerEntity, config: SemanticTagConfig) -> Resolution:
        # Both lookups are checked before anything else is touched.
        source_term = self._term(config.source_term_uri, "source")
        derivative_term = self._term(config.derivative_term_uri, "derivative")

        source_media = self._media_with_term(entity, source_term)
        source_file = self._media.source_file(source_media)
        if source_file is None:
            raise ResolutionError(
                f"Could not locate source file for media {source_media.mid}"
            )

        return Resolution(
            source_locator=self._media.file_url(source_file),
            destination_locator=self._urls.media_put_url(
                entity, DERIVATIVE_MEDIA_TYPE, derivative_term.tid
            ),
            media=source_media,
            derivative_term=derivative_term,
        )

    def _term(self, uri: str, role: str) -> Term:
        term = self._terms.term_for_uri(uri)
        if term is None:
            raise ResolutionError(f"Could not locate {role} term with uri {uri!r}")
        return term

    def _media_with_term(self, entity: TriggerEntity, term: Term) -> MediaItem:
        fields = [
            f.name
            for f in self._entities.list_reference_fields("media")
            if f.target_type == entity.entity_type
        ]
        if not fields:
            raise ResolutionError(
                f"No media reference fields target {entity.entity_type!r}"
            )
        candidates = [
            m for m in self._media.media_referencing(entity, fields) if term.tid in m.tags
        ]
        if not candidates:
            raise ResolutionError(
                f"No media referencing {entity.entity_type} {entity.id} "
                f"is tagged with term {term.tid} ({term.external_uri})"
            )
        chosen = min(candidates, key=lambda m: m.mid)
        if len(candidates) > 1:
            logger.debug(
                "%d media tagged %s for %s %s; using lowest mid %d",
                len(candidates),
                term.tid,
                entity.entity_type,
                entity.id,
                chosen.mid,
            )
        return chosen


# ---------------------------------------------------------------------------
# Field strategies
# ---------------------------------------------------------------------------


class FieldMappingResolver:
    """The configured source field on the entity *is* the source locator.

    Handles both ``field_to_field`` and ``field_mapping`` (which adds the
    media bundle to create).
    """

    def resolve(
        self, entity: TriggerEntity, config: FieldToFieldConfig | FieldMappingConfig
    ) -> Resolution:
        if config.source not in entity.fields:
            raise ResolutionError(
                f"{entity.entity_type} {entity.id} has no field {config.source!r}"
            )
        return Resolution(
            source_locator=config.source,
            destination_locator=config.destination,
            bundle=getattr(config, "bundle", None),
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ResolverRegistry:
    """Maps a strategy to the resolver that handles it."""

    def __init__(self) -> None:
        self._resolvers: dict[Strategy, ContentResolver] = {}

    def register(self, strategy: Strategy, resolver: ContentResolver) -> None:
        self._resolvers[strategy] = resolver

    def for_config(self, config: Any) -> ContentResolver:
        strategy = Strategy(config.strategy)
        try:
            return self._resolvers[strategy]
        except KeyError:
            raise ResolutionError(
                f"No resolver registered for strategy {strategy.value!r}"
            ) from None

    def resolve(self, entity: TriggerEntity, config: Any) -> Resolution:
        return self.for_config(config).resolve(entity, config)


def default_resolvers(
    terms: TermIndex,
    entities: EntityIndex,
    media: MediaIndex,
    urls: UrlGenerator,
) -> ResolverRegistry:
    """Registry with every built-in strategy wired to the collaborators."""
    registry = ResolverRegistry()
    registry.register(
        Strategy.SEMANTIC_TAG, SemanticTagResolver(terms, entities, media, urls)
    )
    field_resolver = FieldMappingResolver()
    registry.register(Strategy.FIELD_TO_FIELD, field_resolver)
    registry.register(Strategy.FIELD_MAPPING, field_resolver)
    return registry
