"""
Pytest configuration and fixtures for portal API tests.
"""
import os
import sys
import threading
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from portal.app import create_app
from portal.models import db, ContactMessage, Registration

ADMIN_EMAIL = 'admin@gullyesports.in'
ADMIN_PASSWORD = 'correct-horse'


class RecordingSink:
    """Notification sink that keeps every event instead of emailing it."""

    configured = True

    def __init__(self):
        self.events = []
        self.result = True
        self.error = None
        self._lock = threading.Lock()

    def send(self, event):
        with self._lock:
            self.events.append(event)
        if self.error is not None:
            raise self.error
        return self.result

    def verify(self):
        return True

    def reset(self):
        with self._lock:
            self.events.clear()
        self.result = True
        self.error = None


@pytest.fixture(scope='session')
def recording_sink():
    return RecordingSink()


@pytest.fixture(scope='session')
def app(recording_sink):
    """Create application for testing."""
    app = create_app('testing', notification_sink=recording_sink)

    with app.app_context():
        db.create_all()
        yield app
        app.notifications.shutdown()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def sink(app, recording_sink):
    """The app's notification sink, emptied for this test."""
    app.notifications.drain(timeout=5)
    recording_sink.reset()
    yield recording_sink
    app.notifications.drain(timeout=5)
    recording_sink.reset()


@pytest.fixture(autouse=True)
def reset_rate_limits(app):
    for limiter in app.extensions['rate_limiters'].values():
        limiter.reset()
    yield


@pytest.fixture(scope='function')
def db_session(app):
    """Create database session for testing."""
    with app.app_context():
        # Clear all tables before each test
        db.session.remove()

        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture
def admin_account(app, db_session):
    """Provision an administrator the way manage_db.py does."""
    account = app.credentials.create_account(ADMIN_EMAIL, ADMIN_PASSWORD, 'Site Admin')
    db.session.refresh(account)
    return account


@pytest.fixture
def auth_headers(app, admin_account):
    token = app.tokens.issue(admin_account.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def duo_payload():
    return {
        'game': 'pubg',
        'mode': 'duo',
        'teamName': 'Alpha',
        'players': [
            {'inGameName': 'A', 'inGameId': '1', 'phone': '9876543210'},
            {'inGameName': 'B', 'inGameId': '2', 'phone': '9876543211'},
        ],
        'transactionId': 'UPI000111222',
    }


@pytest.fixture
def contact_payload():
    return {
        'name': 'Ravi Kumar',
        'email': 'Ravi@Example.com',
        'phone': '9876543210',
        'subject': 'tournament',
        'message': 'When does the next squad tournament start?',
    }


@pytest.fixture
def sample_registrations(app, db_session):
    """Registrations across games and statuses, oldest first."""
    rows = [
        ('pubg', 'solo', None, 5, 'approved'),
        ('pubg', 'duo', 'Alpha', 10, 'pending'),
        ('freefire', 'squad', 'Blaze', 20, 'approved'),
        ('cod', 'squad', 'Ghosts', 20, 'rejected'),
        ('freefire', 'solo', None, 5, 'pending'),
    ]
    registrations = []
    for i, (game, mode, team, fee, status) in enumerate(rows):
        registration = Registration(
            game=game,
            mode=mode,
            team_name=team,
            players=[{'inGameName': f'P{i}', 'inGameId': str(i), 'phone': '9876543210'}],
            transaction_id=f'UPI-SAMPLE-{i:03d}',
            entry_fee=fee,
            status=status
        )
        db.session.add(registration)
        db.session.commit()
        registrations.append(registration)

    for registration in registrations:
        db.session.refresh(registration)
    return registrations


@pytest.fixture
def sample_contacts(app, db_session):
    contacts = []
    for i, status in enumerate(['new', 'new', 'read', 'replied']):
        contact = ContactMessage(
            name=f'Player {i}',
            email=f'player{i}@example.com',
            subject='feedback',
            message='Loved the last tournament, keep it up!',
            status=status
        )
        db.session.add(contact)
        db.session.commit()
        contacts.append(contact)

    for contact in contacts:
        db.session.refresh(contact)
    return contacts
