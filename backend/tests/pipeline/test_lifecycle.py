import pytest

from qrypta.pipeline.lifecycle import (ALLOWED_TRANSITIONS, SUCCESSFUL_TERMINAL_STATES,
                                       TERMINAL_STATES, PipelineState, Transition,
                                       allowed_targets, validate_transition)


def test_pipeline_lifecycle_validate_transition():
    assert validate_transition("collecting", "validated").allowed
    assert validate_transition(PipelineState.AWAITING_CONFIRMATION, PipelineState.PROVING).allowed
    assert "awaiting_confirmation" in allowed_targets("validated")


@pytest.mark.parametrize(
    "current,target",
    [
        ("validated", "proving"),
        ("collecting", "submitting"),
        ("proving", "submitting"),
        ("awaiting_confirmation", "submitting"),
    ],
)
def test_confirmation_checkpoint_cannot_be_skipped(current, target):
    result = validate_transition(current, target)
    assert not result.allowed
    assert result.reason == f"disallowed_transition:{current}->{target}"


@pytest.mark.parametrize("state", sorted(TERMINAL_STATES, key=lambda s: s.value))
def test_terminal_states_have_no_exits(state):
    assert allowed_targets(state) == []
    for target in PipelineState:
        assert not validate_transition(state, target).allowed


def test_every_non_terminal_state_can_fail():
    for state, targets in ALLOWED_TRANSITIONS.items():
        if state not in TERMINAL_STATES:
            assert PipelineState.FAILED in targets


def test_successful_terminal_states():
    assert SUCCESSFUL_TERMINAL_STATES == {
        PipelineState.DRY_RUN_EXIT,
        PipelineState.CANCELLED,
        PipelineState.REPORTED,
    }
    assert PipelineState.FAILED in TERMINAL_STATES
    assert PipelineState.FAILED not in SUCCESSFUL_TERMINAL_STATES


def test_unknown_states():
    assert validate_transition("bogus", "validated").reason == "unknown_current_state:bogus"
    assert validate_transition("collecting", "bogus").reason == "unknown_target_state:bogus"
    assert validate_transition("COLLECTING", "Validated").allowed
    assert allowed_targets("bogus") == []


def test_transition_to_dict():
    transition = Transition(PipelineState.PROVING, PipelineState.PROVED, "Proof generated")
    data = transition.to_dict()
    assert data["from_state"] == "proving"
    assert data["to_state"] == "proved"
    assert data["message"] == "Proof generated"
    assert data["timestamp"].endswith("+00:00")
