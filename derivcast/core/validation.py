"""Save-time validation of derivative task configurations.

``TaskConfigValidator.validate`` is the only way a raw configuration
becomes a :data:`DerivativeTaskConfig`.  Every problem is collected into
one ``ConfigError`` keyed by field name, so an admin surface can show all
of them at once.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from derivcast.config import settings
from derivcast.core.templating import PathTemplateEngine
from derivcast.errors import ConfigError
from derivcast.models.task_config import (
    TASK_CONFIG_ADAPTER,
    FieldMappingConfig,
    FieldToFieldConfig,
    SemanticTagConfig,
)
from derivcast.repository import EntityIndex, MediaIndex, TermIndex

logger = logging.getLogger(__name__)

MIMETYPE_HINT = "Please enter an image mimetype (e.g. image/jpeg, image/png, etc...)"


def mimetype_error(
    mimetype: str, allowed_types: list[str] | None = None
) -> str | None:
    """Return an error message for *mimetype*, or ``None`` when valid.

    A valid mimetype has exactly two non-empty parts.  When
    *allowed_types* is given, the major type must be one of them.
    """
    parts = mimetype.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return MIMETYPE_HINT
    if allowed_types is not None and parts[0] not in allowed_types:
        return MIMETYPE_HINT
    return None


def parse_task_config(raw: Any) -> Any:
    """Shape-only parse; raises ``ConfigError`` with per-field messages."""
    try:
        return TASK_CONFIG_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise ConfigError(_field_errors(exc)) from exc


def _field_errors(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for err in exc.errors():
        # loc is (strategy_tag, field) for union members, (field,) otherwise
        loc = [str(part) for part in err["loc"]]
        field = loc[-1] if loc else "__root__"
        errors.setdefault(field, err["msg"])
    return errors


class TaskConfigValidator:
    """Validates raw task configurations against the repository.

    Parameters
    ----------
    terms:
        Used to check that both term URIs resolve.
    entities:
        Used to check mapped field names exist.  Optional; field checks
        are skipped without it.
    media:
        Supplies the filesystem schemes; falls back to
        ``settings.allowed_schemes``.
    entity_type:
        The entity type whose fields the field strategies read.
    """

    def __init__(
        self,
        terms: TermIndex,
        entities: EntityIndex | None = None,
        media: MediaIndex | None = None,
        *,
        entity_type: str = "node",
        allowed_mime_types: list[str] | None = None,
        engine: PathTemplateEngine | None = None,
    ) -> None:
        self._terms = terms
        self._entities = entities
        self._media = media
        self._entity_type = entity_type
        self._allowed_mime_types = (
            settings.allowed_mime_types if allowed_mime_types is None else allowed_mime_types
        )
        self._engine = engine or PathTemplateEngine()

    def validate(self, raw: dict[str, Any]) -> Any:
        """Return a frozen task configuration or raise ``ConfigError``."""
        config = parse_task_config(raw)

        errors: dict[str, str] = {}
        problem = mimetype_error(config.mimetype, self._allowed_mime_types)
        if problem:
            errors["mimetype"] = problem

        if isinstance(config, SemanticTagConfig):
            errors.update(self._semantic_tag_errors(config))
        elif isinstance(config, (FieldToFieldConfig, FieldMappingConfig)):
            errors.update(self._field_errors(config))

        if errors:
            logger.info("Rejected %s configuration: %s", config.strategy, errors)
            raise ConfigError(errors)
        return config

    # ------------------------------------------------------------------
    # Strategy checks
    # ------------------------------------------------------------------

    def _semantic_tag_errors(self, config: SemanticTagConfig) -> dict[str, str]:
        errors: dict[str, str] = {}

        # Each term is checked on its own; one resolving says nothing
        # about the other.
        if self._terms.term_for_uri(config.source_term_uri) is None:
            errors["source_term_uri"] = (
                f"Could not locate source term with uri {config.source_term_uri!r}"
            )
        if self._terms.term_for_uri(config.derivative_term_uri) is None:
            errors["derivative_term_uri"] = (
                f"Could not locate derivative term with uri {config.derivative_term_uri!r}"
            )

        schemes = (
            self._media.filesystem_schemes()
            if self._media is not None
            else settings.allowed_schemes
        )
        if config.scheme not in schemes:
            errors["scheme"] = (
                f"Unknown file system {config.scheme!r}; expected one of {sorted(schemes)}"
            )

        if not config.path:
            errors["path"] = "File path must not be empty"
        else:
            unknown = self._engine.unknown_namespaces(config.path)
            if unknown:
                errors["path"] = f"Unknown token types: {', '.join(unknown)}"
        return errors

    def _field_errors(
        self, config: FieldToFieldConfig | FieldMappingConfig
    ) -> dict[str, str]:
        errors: dict[str, str] = {}
        if isinstance(config, FieldMappingConfig) and not config.bundle.strip():
            errors["bundle"] = "Media bundle must not be empty"
        if self._entities is None:
            return errors

        known = {f.name for f in self._entities.list_reference_fields(self._entity_type)}
        for name in ("source", "destination"):
            value = getattr(config, name)
            if value not in known:
                errors[name] = (
                    f"{value!r} is not a reference field on {self._entity_type}"
                )
        return errors
