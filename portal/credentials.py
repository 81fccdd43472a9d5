import logging
from typing import Optional

from sqlalchemy.orm import undefer
from werkzeug.security import generate_password_hash, check_password_hash

from .models import db, Administrator, ADMIN_ROLES, utcnow

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Administrator accounts and their password hashes.

    Accounts are provisioned out-of-band (manage_db.py); no public route
    creates one. The password hash is deferred on the model and only
    loaded here when a login is being checked.
    """

    def __init__(self, hash_method: str = 'scrypt'):
        self.hash_method = hash_method
        # Compared against when the email is unknown so both paths pay for one hash check
        self._dummy_hash = generate_password_hash('not-a-real-password', method=hash_method)

    def find_by_email(self, email: str, with_password: bool = False) -> Optional[Administrator]:
        """Look up an account by email, case-insensitively."""
        if not email:
            return None
        query = Administrator.query.filter_by(email=email.strip().lower())
        if with_password:
            query = query.options(undefer(Administrator.password_hash))
        return query.first()

    def get_by_id(self, account_id: int) -> Optional[Administrator]:
        return db.session.get(Administrator, account_id)

    def verify_password(self, account: Administrator, candidate: str) -> bool:
        if not account or not account.password_hash or not candidate:
            return False
        return check_password_hash(account.password_hash, candidate)

    def set_password(self, account: Administrator, new_password: str):
        """Replace the stored hash. The only code path that hashes a password."""
        if not new_password or len(new_password) < 6:
            raise ValueError('Password must be at least 6 characters')
        account.password_hash = generate_password_hash(new_password, method=self.hash_method)

    def create_account(self, email: str, password: str, display_name: str, role: str = 'admin') -> Administrator:
        if role not in ADMIN_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(ADMIN_ROLES)}")

        account = Administrator(
            email=email.strip().lower(),
            display_name=display_name.strip(),
            role=role
        )
        self.set_password(account, password)
        db.session.add(account)
        db.session.commit()

        logger.info(f"Provisioned {role} account {account.email}")
        return account

    def authenticate(self, email: str, password: str) -> Optional[Administrator]:
        """Return the account for a correct email/password pair, else None.

        Records the login time on success. Callers must not distinguish
        an unknown email from a wrong password.
        """
        account = self.find_by_email(email, with_password=True)
        if account is None:
            check_password_hash(self._dummy_hash, password or '')
            return None

        if not self.verify_password(account, password):
            return None

        account.last_login_at = utcnow()
        db.session.commit()
        return account
