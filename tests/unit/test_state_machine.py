"""
Unit tests for SubmissionStateMachine.
Tests both submission flows, rejection and history tracking.
"""
import pytest
from shared.state_machine import (
    SubmissionStateMachine,
    SubmissionState,
    TransitionError,
    Transition,
    REGISTRATION_FLOW,
    CONTACT_FLOW,
    TERMINAL_STATES
)


class TestSubmissionStateEnum:
    """Tests for SubmissionState enum."""

    def test_all_states_exist(self):
        """All expected states should exist."""
        assert SubmissionState.RECEIVED.value == "received"
        assert SubmissionState.VALIDATED.value == "validated"
        assert SubmissionState.FEE_COMPUTED.value == "fee_computed"
        assert SubmissionState.UNIQUENESS_CHECKED.value == "uniqueness_checked"
        assert SubmissionState.ROSTER_CHECKED.value == "roster_checked"
        assert SubmissionState.PERSISTED.value == "persisted"
        assert SubmissionState.NOTIFIED.value == "notification_attempted"
        assert SubmissionState.REJECTED.value == "rejected"

    def test_terminal_states(self):
        assert set(TERMINAL_STATES) == {SubmissionState.NOTIFIED, SubmissionState.REJECTED}


class TestTransitionError:
    """Tests for TransitionError exception."""

    def test_error_attributes(self):
        error = TransitionError("received", "persisted")
        assert error.from_state == "received"
        assert error.to_state == "persisted"

    def test_default_reason(self):
        error = TransitionError("received", "persisted")
        assert "received" in str(error)
        assert "persisted" in str(error)

    def test_custom_reason(self):
        error = TransitionError("received", "persisted", "Custom error message")
        assert str(error) == "Custom error message"


class TestRegistrationFlow:
    """Tests for the registration flow."""

    def test_initial_state(self):
        sm = SubmissionStateMachine(REGISTRATION_FLOW)
        assert sm.state == SubmissionState.RECEIVED
        assert not sm.is_terminal
        assert sm.get_history() == []

    def test_happy_path(self):
        """Every step in order ends in the terminal notified state."""
        sm = SubmissionStateMachine(REGISTRATION_FLOW)
        for action in ['validate', 'compute_fee', 'check_uniqueness', 'check_roster', 'persist', 'notify']:
            sm.transition(action)

        assert sm.state == SubmissionState.NOTIFIED
        assert sm.is_terminal
        with pytest.raises(TransitionError):
            sm.transition('notify')

    def test_cannot_skip_steps(self):
        """Persisting before the roster check is refused."""
        sm = SubmissionStateMachine(REGISTRATION_FLOW)
        sm.transition('validate')

        with pytest.raises(TransitionError):
            sm.transition('persist')
        assert sm.state == SubmissionState.VALIDATED

    def test_custom_transition_table(self):
        sm = SubmissionStateMachine([
            Transition(SubmissionState.RECEIVED, SubmissionState.PERSISTED, "persist"),
        ])
        assert sm.transition('persist') == SubmissionState.PERSISTED


class TestContactFlow:
    """Tests for the shorter contact flow."""

    def test_happy_path(self):
        sm = SubmissionStateMachine(CONTACT_FLOW)
        sm.transition('validate')
        sm.transition('persist')
        sm.transition('notify')
        assert sm.state == SubmissionState.NOTIFIED

    def test_no_fee_step(self):
        sm = SubmissionStateMachine(CONTACT_FLOW)
        sm.transition('validate')
        with pytest.raises(TransitionError):
            sm.transition('compute_fee')


class TestRejection:
    """Tests for reject()."""

    def test_reject_from_any_open_state(self):
        sm = SubmissionStateMachine(REGISTRATION_FLOW)
        sm.transition('validate')
        sm.transition('compute_fee')

        assert sm.reject('duplicate') == SubmissionState.REJECTED
        assert sm.rejection_reason == 'duplicate'
        assert sm.is_terminal

    def test_cannot_reject_twice(self):
        sm = SubmissionStateMachine(CONTACT_FLOW)
        sm.reject('bad input')
        with pytest.raises(TransitionError):
            sm.reject('again')

    def test_cannot_reject_after_notification(self):
        sm = SubmissionStateMachine(CONTACT_FLOW)
        for action in ['validate', 'persist', 'notify']:
            sm.transition(action)
        with pytest.raises(TransitionError):
            sm.reject('too late')

    def test_no_transitions_after_rejection(self):
        sm = SubmissionStateMachine(REGISTRATION_FLOW)
        sm.reject()
        with pytest.raises(TransitionError):
            sm.transition('validate')


class TestHistory:
    """Tests for transition history."""

    def test_history_records_each_step(self):
        sm = SubmissionStateMachine(CONTACT_FLOW)
        sm.transition('validate')
        sm.reject('db down')

        assert sm.get_history() == [
            (SubmissionState.RECEIVED, 'validate', SubmissionState.VALIDATED),
            (SubmissionState.VALIDATED, 'reject', SubmissionState.REJECTED),
        ]

    def test_history_is_a_copy(self):
        sm = SubmissionStateMachine(CONTACT_FLOW)
        sm.transition('validate')
        sm.get_history().clear()
        assert len(sm.get_history()) == 1
