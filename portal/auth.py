"""
Bearer-token authentication for admin routes, wired through Flask-Login.

The request loader resolves `Authorization: Bearer <token>` to an
Administrator on every request; `login_required` then gates the admin
blueprint. When resolution fails the reason is kept on `g` so the 401
response can say whether the token was missing, invalid or expired.
"""
import logging

from flask import Flask, current_app, g
from flask_login import LoginManager

from .errors import Unauthorized
from .tokens import TokenError

logger = logging.getLogger(__name__)

login_manager = LoginManager()

ACCOUNT_NOT_FOUND_MESSAGE = 'Admin account not found.'


def extract_bearer_token(header_value: str):
    if not header_value:
        return None
    parts = header_value.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None
    return parts[1]


@login_manager.request_loader
def load_admin_from_request(request):
    token = extract_bearer_token(request.headers.get('Authorization', ''))
    if token is None:
        g.auth_error = Unauthorized.default_message
        return None

    try:
        account_id = current_app.tokens.verify(token)
    except TokenError as e:
        logger.debug(f"Bearer token rejected on {request.path}: {e.message}")
        g.auth_error = e.message
        return None

    account = current_app.credentials.get_by_id(account_id)
    if account is None:
        logger.warning(f"Token presented for missing admin account {account_id}")
        g.auth_error = ACCOUNT_NOT_FOUND_MESSAGE
        return None
    return account


@login_manager.unauthorized_handler
def reject_unauthenticated():
    raise Unauthorized(g.get('auth_error', Unauthorized.default_message))


def init_auth(app: Flask):
    login_manager.init_app(app)
