from enum import Enum
from typing import List, Optional
from dataclasses import dataclass


class SubmissionState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    FEE_COMPUTED = "fee_computed"
    UNIQUENESS_CHECKED = "uniqueness_checked"
    ROSTER_CHECKED = "roster_checked"
    PERSISTED = "persisted"
    NOTIFIED = "notification_attempted"
    REJECTED = "rejected"


TERMINAL_STATES = (SubmissionState.NOTIFIED, SubmissionState.REJECTED)


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: SubmissionState
    to_state: SubmissionState
    action: str


REGISTRATION_FLOW = [
    Transition(SubmissionState.RECEIVED, SubmissionState.VALIDATED, "validate"),
    Transition(SubmissionState.VALIDATED, SubmissionState.FEE_COMPUTED, "compute_fee"),
    Transition(SubmissionState.FEE_COMPUTED, SubmissionState.UNIQUENESS_CHECKED, "check_uniqueness"),
    Transition(SubmissionState.UNIQUENESS_CHECKED, SubmissionState.ROSTER_CHECKED, "check_roster"),
    Transition(SubmissionState.ROSTER_CHECKED, SubmissionState.PERSISTED, "persist"),
    Transition(SubmissionState.PERSISTED, SubmissionState.NOTIFIED, "notify"),
]

CONTACT_FLOW = [
    Transition(SubmissionState.RECEIVED, SubmissionState.VALIDATED, "validate"),
    Transition(SubmissionState.VALIDATED, SubmissionState.PERSISTED, "persist"),
    Transition(SubmissionState.PERSISTED, SubmissionState.NOTIFIED, "notify"),
]


class SubmissionStateMachine:
    """Tracks one submission through a linear flow of checks.

    Any non-terminal state may be rejected; rejection and the final
    notification step are terminal.
    """

    def __init__(self, transitions: List[Transition], initial_state: SubmissionState = SubmissionState.RECEIVED):
        self.transitions = transitions
        self._state = initial_state
        self._history: List[tuple] = []
        self.rejection_reason: Optional[str] = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def transition(self, action: str) -> SubmissionState:
        for t in self.transitions:
            if t.from_state == self._state and t.action == action:
                old_state = self._state
                self._state = t.to_state
                self._history.append((old_state, action, self._state))
                return self._state

        raise TransitionError(
            self._state.value,
            "unknown",
            f"No valid transition for action '{action}' from state '{self._state.value}'"
        )

    def reject(self, reason: str = None) -> SubmissionState:
        if self.is_terminal:
            raise TransitionError(self._state.value, SubmissionState.REJECTED.value)

        old_state = self._state
        self._state = SubmissionState.REJECTED
        self.rejection_reason = reason
        self._history.append((old_state, "reject", self._state))
        return self._state

    def get_history(self) -> List[tuple]:
        return self._history.copy()
