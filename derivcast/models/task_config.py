"""Derivative task configuration: a tagged union over mapping strategies.

The strategy is selected once, when the configuration is saved, and stored
alongside its strategy-specific fields.  Dispatch reads the configuration
but never modifies it.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from derivcast.config import settings

DEFAULT_QUEUE = "islandora-connector-houdini"
DEFAULT_EVENT_LABEL = "Generate Derivative"
DEFAULT_MIMETYPE = "image/jpeg"
DEFAULT_PATH_TEMPLATE = "[date:custom:Y]-[date:custom:m]/[node:nid].jpg"


class Strategy(str, Enum):
    """The mapping strategies, in the order they were introduced."""

    SEMANTIC_TAG = "semantic_tag"
    FIELD_TO_FIELD = "field_to_field"
    FIELD_MAPPING = "field_mapping"


class TaskConfigBase(BaseModel):
    """Fields shared by every strategy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    queue: str = DEFAULT_QUEUE
    event: str = DEFAULT_EVENT_LABEL
    mimetype: str = DEFAULT_MIMETYPE
    args: str = ""

    @field_validator("queue")
    @classmethod
    def _queue_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("queue name must not be empty")
        return value.strip()

    @field_validator("mimetype")
    @classmethod
    def _strip_mimetype(cls, value: str) -> str:
        return value.strip()


class SemanticTagConfig(TaskConfigBase):
    """Locate media by semantic tag, write derivative to a templated path."""

    strategy: Literal["semantic_tag"] = "semantic_tag"
    source_term_uri: str
    derivative_term_uri: str
    scheme: str = Field(default_factory=lambda: settings.default_scheme)
    path: str = DEFAULT_PATH_TEMPLATE

    @field_validator("path")
    @classmethod
    def _trim_separators(cls, value: str) -> str:
        return value.strip().strip("\\/")


class FieldToFieldConfig(TaskConfigBase):
    """Source and destination are fields on the trigger entity."""

    strategy: Literal["field_to_field"] = "field_to_field"
    source: str
    destination: str


class FieldMappingConfig(TaskConfigBase):
    """Field-to-field mapping that also names the media bundle to create."""

    strategy: Literal["field_mapping"] = "field_mapping"
    source: str
    destination: str
    bundle: str


DerivativeTaskConfig = Annotated[
    Union[SemanticTagConfig, FieldToFieldConfig, FieldMappingConfig],
    Field(discriminator="strategy"),
]

TASK_CONFIG_ADAPTER: TypeAdapter[Any] = TypeAdapter(DerivativeTaskConfig)

# Registry for default construction by strategy
TASK_CONFIG_TYPE_MAP: dict[Strategy, type[TaskConfigBase]] = {
    Strategy.SEMANTIC_TAG: SemanticTagConfig,
    Strategy.FIELD_TO_FIELD: FieldToFieldConfig,
    Strategy.FIELD_MAPPING: FieldMappingConfig,
}

# Keys that steer resolution but must never reach a worker
CONFIG_ONLY_KEYS: frozenset[str] = frozenset(
    {
        "strategy",
        "queue",
        "event",
        "source_term_uri",
        "derivative_term_uri",
        "scheme",
        "path",
    }
)


def default_configuration(strategy: Strategy) -> dict[str, Any]:
    """Return the defaults for *strategy*, blanks where input is required."""
    model_cls = TASK_CONFIG_TYPE_MAP[strategy]
    data: dict[str, Any] = {"strategy": strategy.value}
    for name, info in model_cls.model_fields.items():
        if name == "strategy":
            continue
        data[name] = "" if info.is_required() else info.get_default(call_default_factory=True)
    return data
