"""
Request models for every endpoint that accepts a body or query string.

Validation collects every failing field and reports the human-readable
messages in field order, each message once even when several roster
entries trip the same rule. Unknown keys are ignored, so a client-sent
entryFee or status never reaches the workflows.
"""
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Literal, Optional, Tuple, Type

from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, ValidationError,
    conlist, field_validator
)

from .fee_policy import MODES
from .models import GAMES, CONTACT_SUBJECTS, CONTACT_STATUSES, REGISTRATION_STATUSES

# Checked by the frontend only. The server accepts any non-empty phone text.
CLIENT_PHONE_PATTERN = re.compile(r'^(\+91[\s-]?)?[6-9]\d{9}$')

BODY_NOT_OBJECT_MESSAGE = 'Request body must be a JSON object'

MAX_PLAYERS = 5
PLAYERS_MESSAGE = 'Players array is required (1-5 players)'

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20


def client_accepts_phone(phone: str) -> bool:
    """Mirror of the frontend's phone check, whitespace stripped first."""
    return bool(CLIENT_PHONE_PATTERN.match(re.sub(r'\s', '', phone)))


def _lowercase_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class RequestModel(BaseModel):
    """Base for inbound JSON bodies.

    `messages` maps a field path (list indexes dropped, e.g.
    'players.phone') to its (required, invalid) messages.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra='ignore')

    messages: ClassVar[Dict[str, Tuple[str, str]]] = {}

    @field_validator('*', mode='before')
    @classmethod
    def blank_is_missing(cls, value):
        if isinstance(value, str):
            if not value.strip():
                return None
            # Also applies to Literal fields, which pydantic never strips
            if cls.model_config.get('str_strip_whitespace'):
                return value.strip()
        return value

    @classmethod
    def message_for(cls, error: Dict[str, Any]) -> str:
        path = '.'.join(str(part) for part in error['loc'] if not isinstance(part, int))
        required, invalid = cls.messages.get(path, (None, None))
        if error['type'] == 'missing' or error.get('input', '') is None:
            return required or f"{path} is required"
        return invalid or error['msg']


class ContactRequest(RequestModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=30)
    subject: Literal[CONTACT_SUBJECTS]
    message: str = Field(min_length=10, max_length=2000)

    messages: ClassVar[Dict[str, Tuple[str, str]]] = {
        'name': ('Name is required', 'Name must be 2-100 characters'),
        'email': ('Email is required', 'Invalid email format'),
        'phone': (None, 'Phone cannot exceed 30 characters'),
        'subject': ('Subject is required', 'Invalid subject category'),
        'message': ('Message is required', 'Message must be 10-2000 characters'),
    }

    @field_validator('email', mode='before')
    @classmethod
    def lowercase_email(cls, value):
        return _lowercase_email(value)


class PlayerIn(RequestModel):
    inGameName: str = Field(max_length=50)
    inGameId: str = Field(max_length=30)
    phone: str = Field(max_length=30)
    email: Optional[EmailStr] = None

    @field_validator('email', mode='before')
    @classmethod
    def lowercase_email(cls, value):
        return _lowercase_email(value)


class RegistrationRequest(RequestModel):
    game: Literal[GAMES]
    mode: Literal[MODES]
    teamName: Optional[str] = Field(None, max_length=50)
    players: conlist(PlayerIn, min_length=1, max_length=MAX_PLAYERS)
    transactionId: str = Field(min_length=5, max_length=100)

    messages: ClassVar[Dict[str, Tuple[str, str]]] = {
        'game': ('Game is required', 'Invalid game selection'),
        'mode': ('Mode is required', 'Invalid mode selection'),
        'teamName': (None, 'Team name cannot exceed 50 characters'),
        'players': (PLAYERS_MESSAGE, PLAYERS_MESSAGE),
        'players.inGameName': ('In-game name is required for all players',
                               'In-game name cannot exceed 50 characters'),
        'players.inGameId': ('In-game ID is required for all players',
                             'In-game ID cannot exceed 30 characters'),
        'players.phone': ('Phone number is required for all players',
                          'Phone number cannot exceed 30 characters'),
        'players.email': (None, 'Invalid player email format'),
        'transactionId': ('Transaction ID is required', 'Transaction ID must be at least 5 characters'),
    }

    @field_validator('players', mode='before')
    @classmethod
    def roster_size_first(cls, value):
        # An oversized roster is rejected before any entry is looked at
        if isinstance(value, list) and len(value) > MAX_PLAYERS:
            raise ValueError(PLAYERS_MESSAGE)
        return value


class LoginRequest(RequestModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    email: EmailStr
    password: str

    messages: ClassVar[Dict[str, Tuple[str, str]]] = {
        'email': ('Email is required', 'Invalid email'),
        'password': ('Password is required', 'Password is required'),
    }

    @field_validator('email', mode='before')
    @classmethod
    def lowercase_email(cls, value):
        return _lowercase_email(value)


class ContactStatusUpdate(RequestModel):
    status: Literal[CONTACT_STATUSES]

    messages: ClassVar[Dict[str, Tuple[str, str]]] = {
        'status': ('Status must be: new, read, or replied',) * 2,
    }


class RegistrationStatusUpdate(RequestModel):
    status: Literal[REGISTRATION_STATUSES]

    messages: ClassVar[Dict[str, Tuple[str, str]]] = {
        'status': ('Status must be: pending, approved, or rejected',) * 2,
    }


class PageQuery(BaseModel):
    """Listing query string. A bad page or limit falls back to its default."""

    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=100)

    @field_validator('page', 'limit', mode='wrap')
    @classmethod
    def default_when_invalid(cls, value, handler, info):
        try:
            return handler(value)
        except ValidationError:
            return cls.model_fields[info.field_name].default

    @classmethod
    def from_args(cls, args) -> 'PageQuery':
        return cls.model_validate({name: args[name] for name in ('page', 'limit') if name in args})


@dataclass
class ValidationResult:
    data: Optional[RequestModel] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_payload(model: Type[RequestModel], payload: Any) -> ValidationResult:
    if not isinstance(payload, dict):
        return ValidationResult(errors=[BODY_NOT_OBJECT_MESSAGE])

    try:
        return ValidationResult(data=model.model_validate(payload))
    except ValidationError as e:
        messages = [model.message_for(error) for error in e.errors()]
        return ValidationResult(errors=list(dict.fromkeys(messages)))
