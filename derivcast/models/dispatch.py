"""Dispatch state machine models: strictly forward transitions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DispatchState(str, Enum):
    """Lifecycle of a single dispatch."""

    IDLE = "idle"
    RESOLVING = "resolving"
    BUILDING = "building"
    AUTHENTICATING = "authenticating"
    PUBLISHING = "publishing"
    DONE = "done"
    ABORTED = "aborted"


# Valid state transitions, enforced by DispatchStateMachine.
# Terminal states (DONE, ABORTED) have no outgoing transitions; there is
# no retry edge.
VALID_TRANSITIONS: dict[DispatchState, set[DispatchState]] = {
    DispatchState.IDLE: {DispatchState.RESOLVING, DispatchState.ABORTED},
    DispatchState.RESOLVING: {DispatchState.BUILDING, DispatchState.ABORTED},
    DispatchState.BUILDING: {DispatchState.AUTHENTICATING, DispatchState.ABORTED},
    DispatchState.AUTHENTICATING: {DispatchState.PUBLISHING, DispatchState.ABORTED},
    DispatchState.PUBLISHING: {DispatchState.DONE, DispatchState.ABORTED},
    DispatchState.DONE: set(),  # terminal
    DispatchState.ABORTED: set(),  # terminal
}

TERMINAL_STATES: frozenset[DispatchState] = frozenset(
    {DispatchState.DONE, DispatchState.ABORTED}
)


class DispatchTransition(BaseModel):
    """Records a single state transition for the dispatch trail."""

    model_config = ConfigDict(frozen=True)

    from_state: DispatchState
    to_state: DispatchState
    reason: str | None = None  # populated when entering ABORTED
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
