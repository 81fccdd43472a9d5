"""
Unit tests for CredentialStore.
"""
import pytest
from sqlalchemy import inspect
from werkzeug.security import check_password_hash

from portal.credentials import CredentialStore
from portal.models import db, Administrator

ADMIN_EMAIL = 'admin@gullyesports.in'
ADMIN_PASSWORD = 'correct-horse'


@pytest.fixture
def store(app):
    return app.credentials


class TestCreateAccount:
    """Tests for provisioning."""

    def test_stores_only_the_hash(self, admin_account):
        assert admin_account.password_hash != ADMIN_PASSWORD
        assert check_password_hash(admin_account.password_hash, ADMIN_PASSWORD)

    def test_email_normalized(self, store, db_session):
        account = store.create_account('  Boss@Example.COM ', 'secret1', 'Boss', 'superadmin')
        assert account.email == 'boss@example.com'
        assert account.role == 'superadmin'

    def test_rejects_unknown_role(self, store, db_session):
        with pytest.raises(ValueError):
            store.create_account('x@example.com', 'secret1', 'X', 'owner')

    def test_rejects_short_password(self, store, db_session):
        with pytest.raises(ValueError):
            store.create_account('x@example.com', '12345', 'X')


class TestLookup:
    """Tests for find_by_email()."""

    def test_case_insensitive(self, store, admin_account):
        assert store.find_by_email(ADMIN_EMAIL.upper()).id == admin_account.id

    def test_unknown(self, store, db_session):
        assert store.find_by_email('nobody@example.com') is None
        assert store.find_by_email('') is None

    def test_hash_deferred_by_default(self, store, admin_account):
        db.session.expunge_all()
        account = store.find_by_email(ADMIN_EMAIL)
        assert 'password_hash' in inspect(account).unloaded

    def test_hash_loaded_for_login(self, store, admin_account):
        db.session.expunge_all()
        account = store.find_by_email(ADMIN_EMAIL, with_password=True)
        assert 'password_hash' not in inspect(account).unloaded


class TestAuthenticate:
    """Tests for authenticate()."""

    def test_success_records_login(self, store, admin_account):
        assert admin_account.last_login_at is None
        account = store.authenticate(ADMIN_EMAIL, ADMIN_PASSWORD)
        assert account.id == admin_account.id
        assert account.last_login_at is not None

    def test_wrong_password(self, store, admin_account):
        assert store.authenticate(ADMIN_EMAIL, 'wrong-password') is None

    def test_unknown_email_still_checks_a_hash(self, store, db_session, mocker):
        spy = mocker.patch('portal.credentials.check_password_hash', return_value=False)
        assert store.authenticate('ghost@example.com', 'whatever') is None
        spy.assert_called_once_with(store._dummy_hash, 'whatever')

    def test_empty_password(self, store, admin_account):
        assert store.authenticate(ADMIN_EMAIL, '') is None


class TestPasswordHashing:
    """The hash only changes when the password does."""

    def test_unrelated_update_keeps_hash(self, store, admin_account, mocker):
        original = admin_account.password_hash
        spy = mocker.patch('portal.credentials.generate_password_hash')

        admin_account.display_name = 'Renamed'
        db.session.commit()
        db.session.refresh(admin_account)

        assert admin_account.password_hash == original
        spy.assert_not_called()

    def test_set_password_rehashes(self, store, admin_account):
        original = admin_account.password_hash
        store.set_password(admin_account, 'new-password')
        db.session.commit()

        assert admin_account.password_hash != original
        assert store.authenticate(ADMIN_EMAIL, 'new-password') is not None
        assert store.authenticate(ADMIN_EMAIL, ADMIN_PASSWORD) is None

    def test_configured_method(self):
        store = CredentialStore('pbkdf2:sha256:1000')
        account = Administrator(email='a@b.co', display_name='A')
        store.set_password(account, 'secret1')
        assert account.password_hash.startswith('pbkdf2:sha256:1000$')
