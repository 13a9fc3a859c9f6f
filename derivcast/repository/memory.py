"""In-memory repository: implements every collaborator protocol.

Backs the test suite and the CLI.  Fixtures are plain JSON documents::

    {
      "entities": [{"entity_type": "node", "id": 1, "title": "Test Node"}],
      "terms": [{"tid": 2, "name": "Preservation Master",
                 "external_uri": "http://pcdm.org/use#PreservationMasterFile"}],
      "files": [{"fid": 1, "filename": "test_file.txt",
                 "uri": "public://test_file.txt"}],
      "media": [{"mid": 1, "tags": [2], "source_fid": 1,
                 "references": {"field_media_of": [1]}}],
      "reference_fields": [{"name": "field_media_of", "entity_type": "media",
                            "target_type": "node"}]
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from derivcast.config import settings
from derivcast.models.entities import (
    FieldDescriptor,
    FileRecord,
    MediaItem,
    Term,
    TriggerEntity,
)

logger = logging.getLogger(__name__)


class InMemoryRepository:
    """Entity, media, file and taxonomy lookups over in-memory records.

    Parameters
    ----------
    base_url:
        Absolute base URL of the repository; used for files whose scheme
        has no configured stream wrapper.
    stream_wrappers:
        Maps a file scheme (``public``) to the URL prefix serving it.
    schemes:
        File schemes derivatives may be written to.
    """

    def __init__(
        self,
        *,
        entities: list[TriggerEntity] | None = None,
        terms: list[Term] | None = None,
        media: list[MediaItem] | None = None,
        files: list[FileRecord] | None = None,
        reference_fields: list[FieldDescriptor] | None = None,
        base_url: str | None = None,
        stream_wrappers: dict[str, str] | None = None,
        schemes: list[str] | None = None,
    ) -> None:
        self._entities = {(e.entity_type, e.id): e for e in entities or []}
        self._terms = {t.tid: t for t in terms or []}
        self._media = {m.mid: m for m in media or []}
        self._files = {f.fid: f for f in files or []}
        self._reference_fields = list(reference_fields or [])
        self._base_url = (base_url or settings.base_url).rstrip("/")
        self._stream_wrappers = dict(
            settings.stream_wrappers if stream_wrappers is None else stream_wrappers
        )
        self._schemes = list(settings.allowed_schemes if schemes is None else schemes)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> InMemoryRepository:
        return cls(
            entities=[TriggerEntity.model_validate(e) for e in data.get("entities", [])],
            terms=[Term.model_validate(t) for t in data.get("terms", [])],
            media=[MediaItem.model_validate(m) for m in data.get("media", [])],
            files=[FileRecord.model_validate(f) for f in data.get("files", [])],
            reference_fields=[
                FieldDescriptor.model_validate(f)
                for f in data.get("reference_fields", [])
            ],
            **kwargs,
        )

    @classmethod
    def load(cls, path: Path, **kwargs: Any) -> InMemoryRepository:
        """Load a JSON fixture file."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        repo = cls.from_dict(data, **kwargs)
        logger.debug("Loaded fixture repository from %s", path)
        return repo

    # ------------------------------------------------------------------
    # Mutation (fixtures and tests only)
    # ------------------------------------------------------------------

    def add_entity(self, entity: TriggerEntity) -> None:
        self._entities[(entity.entity_type, entity.id)] = entity

    def add_term(self, term: Term) -> None:
        self._terms[term.tid] = term

    def add_media(self, media: MediaItem) -> None:
        self._media[media.mid] = media

    def add_file(self, file: FileRecord) -> None:
        self._files[file.fid] = file

    def add_reference_field(self, field: FieldDescriptor) -> None:
        self._reference_fields.append(field)

    # ------------------------------------------------------------------
    # TermIndex
    # ------------------------------------------------------------------

    def term_for_uri(self, uri: str) -> Term | None:
        if not uri:
            return None
        matches = [t for t in self._terms.values() if t.external_uri == uri]
        return min(matches, key=lambda t: t.tid) if matches else None

    def uri_for_term(self, term: Term) -> str:
        return term.external_uri

    # ------------------------------------------------------------------
    # EntityIndex
    # ------------------------------------------------------------------

    def lookup_entity(self, entity_type: str, entity_id: int) -> TriggerEntity | None:
        return self._entities.get((entity_type, entity_id))

    def list_reference_fields(self, entity_type: str) -> list[FieldDescriptor]:
        return [f for f in self._reference_fields if f.entity_type == entity_type]

    # ------------------------------------------------------------------
    # MediaIndex
    # ------------------------------------------------------------------

    def media_referencing(
        self, entity: TriggerEntity, field_names: list[str]
    ) -> list[MediaItem]:
        found = [
            m
            for m in self._media.values()
            if any(entity.id in m.references.get(name, []) for name in field_names)
        ]
        return sorted(found, key=lambda m: m.mid)

    def source_file(self, media: MediaItem) -> FileRecord | None:
        if media.source_fid is None:
            return None
        return self._files.get(media.source_fid)

    def file_url(self, file: FileRecord) -> str:
        prefix = self._stream_wrappers.get(file.scheme)
        if prefix is None:
            return f"{self._base_url}/_flysystem/{file.scheme}/{file.target}"
        return f"{prefix.rstrip('/')}/{file.target}"

    def filesystem_schemes(self) -> list[str]:
        return list(self._schemes)
