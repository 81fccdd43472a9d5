import logging

from flask import Blueprint, request, current_app
from flask_login import login_required, current_user

from portal.errors import Unauthorized, ValidationFailed
from portal.rate_limit import rate_limited
from portal.responses import api_response
from portal.schemas import LoginRequest, validate_payload

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__, url_prefix='/api/v1/admin')

INVALID_CREDENTIALS_MESSAGE = 'Invalid email or password.'


# --- Auth ---

@bp.route('/login', methods=['POST'])
@rate_limited('login')
def login():
    validation = validate_payload(LoginRequest, request.get_json(silent=True))
    if not validation.ok:
        raise ValidationFailed(validation.errors[0], errors=validation.errors)

    email = validation.data.email
    account = current_app.credentials.authenticate(email, validation.data.password)
    if account is None:
        # Same answer for an unknown email and a wrong password
        logger.warning(f"Failed admin login for {email} from {request.remote_addr}")
        raise Unauthorized(INVALID_CREDENTIALS_MESSAGE)

    token = current_app.tokens.issue(account.id)
    logger.info(f"Admin {account.email} logged in")
    return api_response(True, message='Login successful.', data={
        'token': token,
        'admin': account.to_dict(),
    })


@bp.route('/me', methods=['GET'])
@login_required
def me():
    return api_response(True, data=current_user.to_dict(include_last_login=True))


# --- Dashboard ---

@bp.route('/stats', methods=['GET'])
@login_required
def stats():
    return api_response(True, data=current_app.admin.stats())


@bp.route('/contacts', methods=['GET'])
@login_required
def list_contacts():
    page = current_app.admin.list_contacts(request.args)
    return api_response(True, data=page.items, pagination=page.pagination())


@bp.route('/contacts/<int:contact_id>', methods=['PATCH'])
@login_required
def update_contact(contact_id):
    contact = current_app.admin.update_contact_status(contact_id, request.get_json(silent=True))
    return api_response(True, data=contact.to_dict())


@bp.route('/contacts/<int:contact_id>', methods=['DELETE'])
@login_required
def delete_contact(contact_id):
    current_app.admin.delete_contact(contact_id)
    return api_response(True, message='Contact deleted.')


@bp.route('/registrations', methods=['GET'])
@login_required
def list_registrations():
    page = current_app.admin.list_registrations(request.args)
    return api_response(True, data=page.items, pagination=page.pagination())


@bp.route('/registrations/<int:registration_id>', methods=['PATCH'])
@login_required
def update_registration(registration_id):
    registration = current_app.admin.update_registration_status(
        registration_id, request.get_json(silent=True)
    )
    return api_response(True, data=registration.to_dict())
