"""Tests for the dispatch state machine: forward-only, terminal end states."""

from __future__ import annotations

import pytest

from derivcast.core.state_machine import DispatchStateMachine, InvalidTransitionError
from derivcast.models.dispatch import DispatchState

HAPPY_PATH = [
    DispatchState.RESOLVING,
    DispatchState.BUILDING,
    DispatchState.AUTHENTICATING,
    DispatchState.PUBLISHING,
    DispatchState.DONE,
]


class TestDispatchStateMachine:
    def test_starts_idle(self):
        machine = DispatchStateMachine("dx-test")
        assert machine.state == DispatchState.IDLE
        assert machine.transitions == []
        assert machine.is_terminal is False

    def test_happy_path(self):
        machine = DispatchStateMachine("dx-test")
        for target in HAPPY_PATH:
            machine.advance(target)
        assert machine.state == DispatchState.DONE
        assert machine.is_terminal is True
        assert [t.to_state for t in machine.transitions] == HAPPY_PATH

    def test_skipping_a_state_rejected(self):
        machine = DispatchStateMachine("dx-test")
        machine.advance(DispatchState.RESOLVING)
        with pytest.raises(InvalidTransitionError):
            # Cannot publish without building and authenticating
            machine.advance(DispatchState.PUBLISHING)

    def test_no_backwards_transition(self):
        machine = DispatchStateMachine("dx-test")
        machine.advance(DispatchState.RESOLVING)
        machine.advance(DispatchState.BUILDING)
        with pytest.raises(InvalidTransitionError):
            machine.advance(DispatchState.RESOLVING)

    @pytest.mark.parametrize("steps", range(len(HAPPY_PATH)))
    def test_abort_from_any_non_terminal_state(self, steps):
        machine = DispatchStateMachine("dx-test")
        for target in HAPPY_PATH[:steps]:
            machine.advance(target)
        transition = machine.abort("boom")
        assert machine.state == DispatchState.ABORTED
        assert transition.reason == "boom"

    def test_aborted_is_terminal(self):
        machine = DispatchStateMachine("dx-test")
        machine.abort("boom")
        assert machine.available_transitions() == set()
        with pytest.raises(InvalidTransitionError):
            machine.advance(DispatchState.RESOLVING)

    def test_done_cannot_abort(self):
        machine = DispatchStateMachine("dx-test")
        for target in HAPPY_PATH:
            machine.advance(target)
        with pytest.raises(InvalidTransitionError):
            machine.abort("late")

    def test_transitions_is_a_copy(self):
        machine = DispatchStateMachine("dx-test")
        machine.advance(DispatchState.RESOLVING)
        machine.transitions.clear()
        assert len(machine.transitions) == 1
