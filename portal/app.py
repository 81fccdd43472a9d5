import logging
import os
import secrets
import time
from datetime import timedelta

from flask import Flask, jsonify
from flask_cors import CORS
from sqlalchemy.exc import OperationalError
from werkzeug.middleware.proxy_fix import ProxyFix

from .admin_service import AdminService
from .auth import init_auth
from .config import config
from .contact_workflow import ContactWorkflow
from .credentials import CredentialStore
from .errors import register_error_handlers
from .models import db, utcnow
from .notifications import EmailNotifier, NotificationDispatcher
from .rate_limit import init_rate_limiting
from .registration_workflow import RegistrationWorkflow
from .tokens import TokenService

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, notification_sink=None) -> Flask:
    """Application factory for the portal API.

    notification_sink replaces the SMTP notifier (anything with a
    send(event) -> bool method).
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )

    if app.config['BEHIND_PROXY']:
        # request.remote_addr becomes the real client address for rate limiting
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    # Initialize extensions
    db.init_app(app)
    CORS(
        app,
        resources={r'/api/*': {'origins': app.config['CORS_ORIGIN']}},
        methods=['GET', 'POST', 'PATCH', 'DELETE'],
        allow_headers=['Content-Type', 'Authorization'],
        supports_credentials=True
    )

    # Initialize services
    secret = app.config['JWT_SECRET']
    if not secret:
        logger.warning("JWT_SECRET not set; using a random secret, admin tokens will not survive a restart")
        secret = secrets.token_urlsafe(32)
    tokens = TokenService(
        secret,
        lifetime=timedelta(days=app.config['JWT_EXPIRES_DAYS']),
        algorithm=app.config['JWT_ALGORITHM']
    )

    sink = notification_sink or EmailNotifier.from_config(app.config)
    notifications = NotificationDispatcher(sink, max_workers=app.config['NOTIFICATION_WORKERS'])

    # Store services on app for access in routes
    app.credentials = CredentialStore(app.config['PASSWORD_HASH_METHOD'])
    app.tokens = tokens
    app.notifications = notifications
    app.contacts = ContactWorkflow(notifications)
    app.registrations = RegistrationWorkflow(notifications)
    app.admin = AdminService()
    app.started_at = time.time()

    init_auth(app)
    init_rate_limiting(app)
    register_error_handlers(app)

    # Register blueprints
    from .routes import admin, public
    app.register_blueprint(public.bp)
    app.register_blueprint(admin.bp)

    register_health_route(app)

    # Create tables
    with app.app_context():
        try:
            db.create_all()
            logger.info("Database tables ready")
        except OperationalError as e:
            logger.error(f"Database unavailable at startup, serving in degraded mode: {e}")

    if app.config['EMAIL_VERIFY_ON_STARTUP'] and getattr(sink, 'configured', False):
        notifications.submit(sink.verify)
    elif not getattr(sink, 'configured', True):
        logger.warning("Email notifications not configured; submissions will still be saved")

    logger.info(f"Portal API started ({config_name}), allowing origin {app.config['CORS_ORIGIN']}")
    return app


def register_health_route(app: Flask):

    @app.route('/api/v1/health')
    def health_check():
        """Liveness plus dependency status. Always 200 so the process is never restarted for a DB outage."""
        try:
            db.session.execute(db.text('SELECT 1'))
            db_ok = True
        except OperationalError as e:
            logger.warning(f"Health check could not reach the database: {e}")
            db.session.rollback()
            db_ok = False

        email_ok = getattr(app.notifications.sink, 'configured', True)

        return jsonify({
            'success': True,
            'message': 'Server is running',
            'status': 'healthy' if db_ok else 'degraded',
            'timestamp': utcnow().isoformat(),
            'uptime': round(time.time() - app.started_at, 1),
            'services': {
                'database': 'connected' if db_ok else 'disconnected',
                'email': 'configured' if email_ok else 'not_configured',
            },
        }), 200
