"""
Explicit state machine for a transfer run.

This module centralizes allowed transitions so that:
- every run walks collect → confirm → prove → submit → report
- the confirmation checkpoint cannot be skipped on the way to proving
- terminal states stay terminal (no automatic retries)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set, Union

from qrypta.utils.datetime_utils import utc_now


class PipelineState(str, Enum):
    COLLECTING = "collecting"
    VALIDATED = "validated"
    DRY_RUN_EXIT = "dry_run_exit"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CANCELLED = "cancelled"
    PROVING = "proving"
    PROVED = "proved"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    REPORTED = "reported"
    FAILED = "failed"


ALLOWED_TRANSITIONS: Dict[PipelineState, Set[PipelineState]] = {
    PipelineState.COLLECTING: {PipelineState.VALIDATED, PipelineState.FAILED},
    PipelineState.VALIDATED: {
        PipelineState.DRY_RUN_EXIT,
        PipelineState.AWAITING_CONFIRMATION,
        PipelineState.FAILED,
    },
    PipelineState.AWAITING_CONFIRMATION: {
        PipelineState.PROVING,
        PipelineState.CANCELLED,
        PipelineState.FAILED,
    },
    PipelineState.PROVING: {PipelineState.PROVED, PipelineState.FAILED},
    PipelineState.PROVED: {PipelineState.SUBMITTING, PipelineState.FAILED},
    PipelineState.SUBMITTING: {PipelineState.SUBMITTED, PipelineState.FAILED},
    PipelineState.SUBMITTED: {PipelineState.REPORTED, PipelineState.FAILED},
    # terminal states
    PipelineState.DRY_RUN_EXIT: set(),
    PipelineState.CANCELLED: set(),
    PipelineState.REPORTED: set(),
    PipelineState.FAILED: set(),
}

TERMINAL_STATES: Set[PipelineState] = {
    state for state, targets in ALLOWED_TRANSITIONS.items() if not targets
}

# Terminal states that end the process with exit code 0
SUCCESSFUL_TERMINAL_STATES: Set[PipelineState] = {
    PipelineState.DRY_RUN_EXIT,
    PipelineState.CANCELLED,
    PipelineState.REPORTED,
}


@dataclass(frozen=True)
class TransitionResult:
    allowed: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class Transition:
    from_state: PipelineState
    to_state: PipelineState
    message: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, str]:
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


def _coerce(state: Union[PipelineState, str, None]) -> Optional[PipelineState]:
    try:
        return PipelineState((state or "").lower() if isinstance(state, str) else state)
    except ValueError:
        return None


def validate_transition(current: Union[PipelineState, str], target: Union[PipelineState, str]) -> TransitionResult:
    current_state = _coerce(current)
    target_state = _coerce(target)

    if current_state is None:
        return TransitionResult(False, f"unknown_current_state:{current}")
    if target_state is None:
        return TransitionResult(False, f"unknown_target_state:{target}")
    if target_state in ALLOWED_TRANSITIONS[current_state]:
        return TransitionResult(True)
    return TransitionResult(False, f"disallowed_transition:{current_state.value}->{target_state.value}")


def allowed_targets(current: Union[PipelineState, str]) -> List[str]:
    state = _coerce(current)
    if state is None:
        return []
    return sorted(target.value for target in ALLOWED_TRANSITIONS[state])
