"""Collaborator protocols for the content repository.

derivcast never queries storage directly.  Entity, media, taxonomy and
session lookups go through these narrow protocols; ``InMemoryRepository``
in :mod:`derivcast.repository.memory` implements all of them for tests,
fixtures and the CLI.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from derivcast.models.entities import (
    FieldDescriptor,
    FileRecord,
    MediaItem,
    Principal,
    Term,
    TriggerEntity,
)


@runtime_checkable
class TermIndex(Protocol):
    """Resolves semantic-tag URIs to taxonomy terms and back."""

    def term_for_uri(self, uri: str) -> Term | None:
        """Return the term carrying *uri*, or ``None`` when not found."""
        ...

    def uri_for_term(self, term: Term) -> str:
        ...


@runtime_checkable
class EntityIndex(Protocol):
    """Entity and field-structure lookups."""

    def lookup_entity(self, entity_type: str, entity_id: int) -> TriggerEntity | None:
        ...

    def list_reference_fields(self, entity_type: str) -> list[FieldDescriptor]:
        """Return the entity-reference fields defined on *entity_type*."""
        ...


@runtime_checkable
class MediaIndex(Protocol):
    """Media and file lookups used by the semantic-tag strategy."""

    def media_referencing(
        self, entity: TriggerEntity, field_names: list[str]
    ) -> list[MediaItem]:
        """Return media whose *field_names* reference *entity*."""
        ...

    def source_file(self, media: MediaItem) -> FileRecord | None:
        ...

    def file_url(self, file: FileRecord) -> str:
        """Return the canonical absolute URL of *file*."""
        ...

    def filesystem_schemes(self) -> list[str]:
        ...


@runtime_checkable
class PrincipalSource(Protocol):
    """Supplies the acting principal for the current session."""

    def current_principal(self) -> Principal:
        ...


class StaticPrincipalSource:
    """Always returns the same principal (CLI runs, tests, service accounts)."""

    def __init__(self, principal: Principal) -> None:
        self._principal = principal

    def current_principal(self) -> Principal:
        return self._principal


__all__ = [
    "EntityIndex",
    "MediaIndex",
    "PrincipalSource",
    "StaticPrincipalSource",
    "TermIndex",
]
