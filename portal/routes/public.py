from flask import Blueprint, request, current_app

bp = Blueprint('public', __name__, url_prefix='/api/v1')


# --- Routes ---

@bp.route('/contact', methods=['POST'])
def submit_contact():
    """Public contact form."""
    result = current_app.contacts.submit(request.get_json(silent=True))
    return result.to_response()


@bp.route('/register', methods=['POST'])
def submit_registration():
    """Public tournament registration. The entry fee is always computed server-side."""
    result = current_app.registrations.submit(request.get_json(silent=True))
    return result.to_response()
