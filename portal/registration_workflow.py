import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError

from shared.events import registration_received_event
from shared.state_machine import SubmissionStateMachine, REGISTRATION_FLOW

from . import fee_policy
from .models import db, Registration
from .notifications import NotificationDispatcher
from .responses import SubmissionResult
from .schemas import RegistrationRequest, validate_payload

logger = logging.getLogger(__name__)

VALIDATION_FAILED_MESSAGE = 'Validation failed. Please check your input.'
DUPLICATE_TRANSACTION_MESSAGE = (
    'This transaction ID has already been used. Each registration requires a unique payment.'
)
TEAM_NAME_REQUIRED_MESSAGE = 'Team name is required for duo and squad modes.'
SUCCESS_MESSAGE = (
    'Registration successful! You will receive match details via WhatsApp/call before the tournament.'
)


class RegistrationWorkflow:
    """
    Accepts a tournament registration:
    validate -> compute fee -> check transaction id -> check roster ->
    persist as pending -> hand off the admin notification.

    The fee, player count and team-name rule always come from the fee
    policy for the submitted mode. The transaction-id lookup is only a
    fast path; the unique constraint on the table decides races.
    """

    def __init__(self, notifications: NotificationDispatcher):
        self.notifications = notifications

    def submit(self, payload: Any) -> SubmissionResult:
        sm = SubmissionStateMachine(REGISTRATION_FLOW)

        validation = validate_payload(RegistrationRequest, payload)
        if not validation.ok:
            return self._reject(sm, 400, VALIDATION_FAILED_MESSAGE, errors=validation.errors)
        sm.transition('validate')
        data = validation.data

        mode = data.mode
        entry_fee = fee_policy.entry_fee_for(mode)
        sm.transition('compute_fee')

        if self.find_by_transaction_id(data.transactionId) is not None:
            return self._reject(sm, 409, DUPLICATE_TRANSACTION_MESSAGE)
        sm.transition('check_uniqueness')

        players = [player.model_dump() for player in data.players]
        expected = fee_policy.required_player_count_for(mode)
        if len(players) < expected:
            return self._reject(
                sm, 400,
                f"{mode} mode requires at least {expected} player(s). You provided {len(players)}."
            )
        if fee_policy.team_name_required(mode) and not data.teamName:
            return self._reject(sm, 400, TEAM_NAME_REQUIRED_MESSAGE)
        sm.transition('check_roster')

        registration = Registration(
            game=data.game,
            mode=mode,
            team_name=data.teamName,
            players=players,
            transaction_id=data.transactionId,
            entry_fee=entry_fee,
            status='pending'
        )
        db.session.add(registration)
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if 'transaction_id' not in str(e.orig):
                raise
            logger.info(f"Concurrent duplicate transaction id rejected: {data.transactionId}")
            return self._reject(sm, 409, DUPLICATE_TRANSACTION_MESSAGE)
        sm.transition('persist')

        logger.info(
            f"New registration {registration.id}: {registration.game} {registration.mode} "
            f"- fee {entry_fee} - transaction {registration.transaction_id}"
        )

        event = registration_received_event(
            registration.id,
            registration.game,
            registration.mode,
            registration.team_name,
            registration.players,
            registration.transaction_id,
            registration.entry_fee
        )
        future = self.notifications.dispatch(event)
        sm.transition('notify')

        return SubmissionResult(
            success=True,
            status_code=201,
            message=SUCCESS_MESSAGE,
            state=sm.state,
            data=self._summary(registration),
            notification=future
        )

    def find_by_transaction_id(self, transaction_id: str) -> Optional[Registration]:
        return Registration.query.filter_by(transaction_id=transaction_id).first()

    def _summary(self, registration: Registration) -> Dict[str, Any]:
        return {
            'registrationId': registration.id,
            'game': registration.game,
            'mode': registration.mode,
            'teamName': registration.team_name,
            'playerCount': len(registration.players),
            'entryFee': registration.entry_fee,
            'status': registration.status,
        }

    def _reject(self, sm: SubmissionStateMachine, status_code: int, message: str, errors=None) -> SubmissionResult:
        sm.reject(message)
        rejected_at = sm.get_history()[-1][0].value
        logger.info(f"Registration rejected at {rejected_at} ({status_code}): {sm.rejection_reason}")
        return SubmissionResult(
            success=False,
            status_code=status_code,
            message=message,
            state=sm.state,
            errors=errors
        )
