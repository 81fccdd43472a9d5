from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone


class EventType(str, Enum):
    CONTACT_RECEIVED = "contact.received"
    REGISTRATION_RECEIVED = "registration.received"


@dataclass
class Event:
    type: EventType
    subject_id: str
    timestamp: str = None
    data: dict = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc).isoformat()
        if self.data is None:
            self.data = {}


def contact_received_event(contact_id: int, name: str, email: str, phone: str, subject: str, message: str) -> Event:
    return Event(
        type=EventType.CONTACT_RECEIVED,
        subject_id=str(contact_id),
        data={
            "name": name,
            "email": email,
            "phone": phone,
            "subject": subject,
            "message": message
        }
    )


def registration_received_event(
    registration_id: int,
    game: str,
    mode: str,
    team_name: str,
    players: list,
    transaction_id: str,
    entry_fee: int
) -> Event:
    return Event(
        type=EventType.REGISTRATION_RECEIVED,
        subject_id=str(registration_id),
        data={
            "game": game,
            "mode": mode,
            "team_name": team_name,
            "players": [dict(p) for p in players],
            "transaction_id": transaction_id,
            "entry_fee": entry_fee
        }
    )
