"""Per-dispatch state machine.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- No transition out of a terminal state
- Every transition recorded in order
"""

from __future__ import annotations

import logging

from derivcast.models.dispatch import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    DispatchState,
    DispatchTransition,
)

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class DispatchStateMachine:
    """Tracks one dispatch from IDLE to DONE or ABORTED.

    One instance per dispatch; instances are never shared, so concurrent
    dispatches cannot observe each other's state.

    Parameters
    ----------
    dispatch_id:
        Identifier used in log lines.
    """

    def __init__(self, dispatch_id: str) -> None:
        self._dispatch_id = dispatch_id
        self._state = DispatchState.IDLE
        self._transitions: list[DispatchTransition] = []

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def transitions(self) -> list[DispatchTransition]:
        """A copy of the recorded transitions, oldest first."""
        return list(self._transitions)

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def advance(self, target: DispatchState, *, reason: str | None = None) -> DispatchTransition:
        """Move to *target*, recording the transition.

        Raises
        ------
        InvalidTransitionError
            If *target* is not reachable from the current state.
        """
        allowed = VALID_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition dispatch {self._dispatch_id} from "
                f"{self._state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        transition = DispatchTransition(
            from_state=self._state, to_state=target, reason=reason
        )
        self._transitions.append(transition)
        logger.debug(
            "Dispatch %s: %s -> %s", self._dispatch_id, self._state.value, target.value
        )
        self._state = target
        return transition

    def abort(self, reason: str) -> DispatchTransition:
        return self.advance(DispatchState.ABORTED, reason=reason)

    def available_transitions(self) -> set[DispatchState]:
        return set(VALID_TRANSITIONS.get(self._state, set()))
