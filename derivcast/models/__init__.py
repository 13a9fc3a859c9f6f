"""Pydantic models for derivcast: repository records, task configs, events."""

from derivcast.models.dispatch import DispatchState, DispatchTransition
from derivcast.models.entities import (
    FieldDescriptor,
    FileRecord,
    MediaItem,
    Principal,
    Term,
    TriggerEntity,
)
from derivcast.models.events import Attachment, CanonicalEvent
from derivcast.models.task_config import (
    DerivativeTaskConfig,
    FieldMappingConfig,
    FieldToFieldConfig,
    SemanticTagConfig,
    Strategy,
)

__all__ = [
    "Attachment",
    "CanonicalEvent",
    "DerivativeTaskConfig",
    "DispatchState",
    "DispatchTransition",
    "FieldDescriptor",
    "FieldMappingConfig",
    "FieldToFieldConfig",
    "FileRecord",
    "MediaItem",
    "Principal",
    "SemanticTagConfig",
    "Strategy",
    "Term",
    "TriggerEntity",
]
