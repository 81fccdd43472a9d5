import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from sqlalchemy import func

from .errors import NotFound, ValidationFailed
from .fee_policy import MODES
from .models import (
    db, ContactMessage, Registration,
    GAMES, CONTACT_STATUSES, REGISTRATION_STATUSES
)
from .schemas import (
    ContactStatusUpdate, RegistrationStatusUpdate, PageQuery, validate_payload
)

logger = logging.getLogger(__name__)

CONTACT_NOT_FOUND_MESSAGE = 'Contact not found.'
REGISTRATION_NOT_FOUND_MESSAGE = 'Registration not found.'


@dataclass
class Page:
    items: List[Dict[str, Any]]
    page: int
    limit: int
    total: int
    pages: int

    def pagination(self) -> Dict[str, int]:
        return {'page': self.page, 'limit': self.limit, 'total': self.total, 'pages': self.pages}


def _filters(args: Mapping[str, Any], allowed: Dict[str, tuple]) -> Dict[str, str]:
    # Unknown filter values are dropped, not rejected
    return {
        name: args.get(name)
        for name, choices in allowed.items()
        if args.get(name) in choices
    }


class AdminService:
    """
    Dashboard queries and status changes. Every caller has already been
    authenticated by the admin blueprint.
    """

    def _paginate(self, query, model, args: Mapping[str, Any]) -> Page:
        paging = PageQuery.from_args(args)

        result = query.order_by(model.created_at.desc(), model.id.desc()).paginate(
            page=paging.page, per_page=paging.limit, error_out=False, count=True
        )
        return Page(
            items=[row.to_dict() for row in result.items],
            page=paging.page,
            limit=paging.limit,
            total=result.total,
            pages=result.pages
        )

    def list_contacts(self, args: Mapping[str, Any]) -> Page:
        filters = _filters(args, {'status': CONTACT_STATUSES})
        return self._paginate(ContactMessage.query.filter_by(**filters), ContactMessage, args)

    def list_registrations(self, args: Mapping[str, Any]) -> Page:
        filters = _filters(args, {
            'game': GAMES,
            'mode': MODES,
            'status': REGISTRATION_STATUSES,
        })
        return self._paginate(Registration.query.filter_by(**filters), Registration, args)

    def update_contact_status(self, contact_id: int, payload: Any) -> ContactMessage:
        validation = validate_payload(ContactStatusUpdate, payload)
        if not validation.ok:
            raise ValidationFailed(validation.errors[0], errors=validation.errors)

        contact = db.session.get(ContactMessage, contact_id)
        if contact is None:
            raise NotFound(CONTACT_NOT_FOUND_MESSAGE)

        contact.status = validation.data.status
        db.session.commit()
        logger.info(f"Contact {contact_id} marked {contact.status}")
        return contact

    def update_registration_status(self, registration_id: int, payload: Any) -> Registration:
        validation = validate_payload(RegistrationStatusUpdate, payload)
        if not validation.ok:
            raise ValidationFailed(validation.errors[0], errors=validation.errors)

        registration = db.session.get(Registration, registration_id)
        if registration is None:
            raise NotFound(REGISTRATION_NOT_FOUND_MESSAGE)

        previous = registration.status
        registration.status = validation.data.status
        db.session.commit()
        logger.info(
            f"Registration {registration_id} ({registration.transaction_id}) "
            f"status {previous} -> {registration.status}"
        )
        return registration

    def delete_contact(self, contact_id: int):
        contact = db.session.get(ContactMessage, contact_id)
        if contact is None:
            raise NotFound(CONTACT_NOT_FOUND_MESSAGE)

        db.session.delete(contact)
        db.session.commit()
        logger.info(f"Contact {contact_id} deleted")

    def stats(self) -> Dict[str, Any]:
        """Dashboard counters. Revenue only counts approved registrations."""
        by_game = dict(
            db.session.query(Registration.game, func.count(Registration.id))
            .group_by(Registration.game)
            .all()
        )
        revenue = (
            db.session.query(func.coalesce(func.sum(Registration.entry_fee), 0))
            .filter(Registration.status == 'approved')
            .scalar()
        )

        return {
            'contacts': {
                'total': ContactMessage.query.count(),
                'new': ContactMessage.query.filter_by(status='new').count(),
            },
            'registrations': {
                'total': Registration.query.count(),
                'pending': Registration.query.filter_by(status='pending').count(),
                'approved': Registration.query.filter_by(status='approved').count(),
                'byGame': {game: by_game.get(game, 0) for game in GAMES},
            },
            'revenue': int(revenue or 0),
        }
