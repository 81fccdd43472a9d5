from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from sqlalchemy.orm import deferred

db = SQLAlchemy()

GAMES = ('pubg', 'freefire', 'cod')
CONTACT_SUBJECTS = ('tournament', 'registration', 'payment', 'report', 'partnership', 'feedback', 'other')
CONTACT_STATUSES = ('new', 'read', 'replied')
REGISTRATION_STATUSES = ('pending', 'approved', 'rejected')
ADMIN_ROLES = ('admin', 'superadmin')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value):
    return value.isoformat() if value else None


class Administrator(UserMixin, db.Model):
    __tablename__ = 'administrators'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)  # Stored lowercase
    # Only loaded when a login is being verified
    password_hash = deferred(db.Column(db.String(256), nullable=False))
    display_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='admin')
    last_login_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'superadmin')", name='ck_administrators_role'),
    )

    def get_id(self):
        """Return the user ID for Flask-Login."""
        return str(self.id)

    def to_dict(self, include_last_login: bool = False):
        data = {
            'id': self.id,
            'name': self.display_name,
            'email': self.email,
            'role': self.role,
        }
        if include_last_login:
            data['lastLogin'] = _isoformat(self.last_login_at)
        return data


class ContactMessage(db.Model):
    __tablename__ = 'contact_messages'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(254), nullable=False)
    phone = db.Column(db.String(30), nullable=True)
    subject = db.Column(db.String(20), nullable=False)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='new', index=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'subject': self.subject,
            'message': self.message,
            'status': self.status,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }


class Registration(db.Model):
    __tablename__ = 'registrations'

    id = db.Column(db.Integer, primary_key=True)
    game = db.Column(db.String(20), nullable=False)
    mode = db.Column(db.String(10), nullable=False)
    team_name = db.Column(db.String(50), nullable=True)
    players = db.Column(db.JSON, nullable=False)  # [{inGameName, inGameId, phone, email}]
    transaction_id = db.Column(db.String(100), nullable=False)
    entry_fee = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.UniqueConstraint('transaction_id', name='uq_registrations_transaction_id'),
        db.CheckConstraint('entry_fee >= 5', name='ck_registrations_entry_fee'),
        db.Index('ix_registrations_game_mode_created', 'game', 'mode', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'game': self.game,
            'mode': self.mode,
            'teamName': self.team_name,
            'players': self.players,
            'transactionId': self.transaction_id,
            'entryFee': self.entry_fee,
            'status': self.status,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }
