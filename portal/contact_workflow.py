import logging
from typing import Any

from shared.events import contact_received_event
from shared.state_machine import SubmissionStateMachine, CONTACT_FLOW

from .models import db, ContactMessage
from .notifications import NotificationDispatcher
from .responses import SubmissionResult
from .schemas import ContactRequest, validate_payload

logger = logging.getLogger(__name__)

VALIDATION_FAILED_MESSAGE = 'Validation failed. Please check your input.'
SUCCESS_MESSAGE = 'Your message has been sent successfully! We will get back to you soon.'


class ContactWorkflow:
    """Saves a contact-form message, then notifies the admin in the background."""

    def __init__(self, notifications: NotificationDispatcher):
        self.notifications = notifications

    def submit(self, payload: Any) -> SubmissionResult:
        sm = SubmissionStateMachine(CONTACT_FLOW)

        validation = validate_payload(ContactRequest, payload)
        if not validation.ok:
            sm.reject(VALIDATION_FAILED_MESSAGE)
            rejected_at = sm.get_history()[-1][0].value
            logger.info(f"Contact rejected at {rejected_at}: {sm.rejection_reason} {validation.errors}")
            return SubmissionResult(
                success=False,
                status_code=400,
                message=VALIDATION_FAILED_MESSAGE,
                state=sm.state,
                errors=validation.errors
            )
        sm.transition('validate')
        data = validation.data

        contact = ContactMessage(
            name=data.name,
            email=data.email,
            phone=data.phone,
            subject=data.subject,
            message=data.message,
            status='new'
        )
        db.session.add(contact)
        db.session.commit()
        sm.transition('persist')

        logger.info(f"New contact {contact.id} saved: {contact.name} ({contact.email}) - subject: {contact.subject}")

        event = contact_received_event(
            contact.id, contact.name, contact.email, contact.phone, contact.subject, contact.message
        )
        future = self.notifications.dispatch(event)
        sm.transition('notify')

        return SubmissionResult(
            success=True,
            status_code=201,
            message=SUCCESS_MESSAGE,
            state=sm.state,
            data={'contactId': contact.id},
            notification=future
        )
