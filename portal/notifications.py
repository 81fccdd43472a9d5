import logging
import smtplib
from concurrent.futures import Future, ThreadPoolExecutor, wait
from email.message import EmailMessage
from threading import Lock
from typing import Optional, Set

from shared.events import Event, EventType

logger = logging.getLogger(__name__)

PLACEHOLDER_PASSWORD = 'your_gmail_app_password_here'

SUBJECT_LABELS = {
    'tournament': 'Tournament Query',
    'registration': 'Registration Help',
    'payment': 'Payment / Payout Issue',
    'report': 'Report a Player',
    'partnership': 'Partnership / Sponsorship',
    'feedback': 'Feedback / Suggestion',
    'other': 'Other',
}

GAME_NAMES = {
    'pubg': 'PUBG (BGMI)',
    'freefire': 'Free Fire',
    'cod': 'Call of Duty Mobile',
}


class EmailNotifier:
    """
    Emails the site admin about new submissions over SMTP.

    send() returns True when the message was handed to the SMTP server
    and False otherwise; it never raises.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        recipient: str = None,
        use_tls: bool = True,
        timeout: int = 10,
        site_name: str = 'GullyEsports'
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.recipient = recipient or username
        self.use_tls = use_tls
        self.timeout = timeout
        self.site_name = site_name

    @classmethod
    def from_config(cls, config) -> 'EmailNotifier':
        return cls(
            host=config['SMTP_HOST'],
            port=config['SMTP_PORT'],
            username=config['EMAIL_USER'],
            password=config['EMAIL_PASS'],
            recipient=config['EMAIL_TO'],
            use_tls=config['SMTP_USE_TLS'],
            timeout=config['SMTP_TIMEOUT'],
            site_name=config['SITE_NAME']
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.username and self.password and self.password != PLACEHOLDER_PASSWORD)

    def _connect(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            if self.use_tls:
                server.starttls()
            server.login(self.username, self.password)
        except Exception:
            server.close()
            raise
        return server

    def verify(self) -> bool:
        """Check that the SMTP server accepts our credentials."""
        if not self.configured:
            logger.warning("EMAIL_USER/EMAIL_PASS not set - email notifications disabled")
            return False
        try:
            with self._connect():
                pass
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Email transport verification failed: {e}")
            return False
        logger.info("Email transport verified - SMTP connection OK")
        return True

    def build_message(self, event: Event) -> EmailMessage:
        if event.type == EventType.CONTACT_RECEIVED:
            subject, body, reply_to = self._render_contact(event)
        elif event.type == EventType.REGISTRATION_RECEIVED:
            subject, body, reply_to = self._render_registration(event)
        else:
            raise ValueError(f"No email template for event type {event.type}")

        message = EmailMessage()
        message['Subject'] = subject
        message['From'] = self.username
        message['To'] = self.recipient
        if reply_to:
            message['Reply-To'] = reply_to
        message.set_content(body)
        return message

    def _render_contact(self, event: Event):
        data = event.data
        label = SUBJECT_LABELS.get(data['subject'], data['subject'])
        body = "\n".join([
            "New Contact Form Submission",
            "============================",
            f"Name: {data['name']}",
            f"Email: {data['email']}",
            f"Phone: {data.get('phone') or 'Not provided'}",
            f"Subject: {label}",
            "Message:",
            data['message'],
            "============================",
            f"Sent from the {self.site_name} contact form",
        ])
        return f"[{self.site_name}] New Contact: {label}", body, data['email']

    def _render_registration(self, event: Event):
        data = event.data
        game_name = GAME_NAMES.get(data['game'], data['game'])
        mode = data['mode'].capitalize()
        players = data['players']
        lines = [
            "New Tournament Registration",
            "============================",
            f"Registration ID: {event.subject_id}",
            f"Game: {game_name}",
            f"Mode: {mode}",
            f"Team Name: {data.get('team_name') or 'N/A'}",
            f"Entry Fee: Rs. {data['entry_fee']}",
            f"Transaction ID: {data['transaction_id']}",
            "",
            "Players:",
        ]
        for i, p in enumerate(players, start=1):
            lines.append(f"  {i}. {p['inGameName']} (ID: {p['inGameId']}) - Phone: {p['phone']}")
        lines += [
            "============================",
            "Please verify the UPI payment before approving.",
        ]
        reply_to = players[0].get('email') if players else None
        subject = f"[{self.site_name}] New Registration: {game_name} {mode} - Rs. {data['entry_fee']}"
        return subject, "\n".join(lines), reply_to

    def send(self, event: Event) -> bool:
        if not self.configured:
            logger.info(f"Email not configured, skipping notification for {event.type.value} {event.subject_id}")
            return False

        try:
            message = self.build_message(event)
            with self._connect() as server:
                server.send_message(message)
        except (smtplib.SMTPException, OSError, ValueError, KeyError) as e:
            logger.error(f"Failed to send email for {event.type.value} {event.subject_id}: {e}")
            return False

        logger.info(f"Email sent for {event.type.value} {event.subject_id}")
        return True


class NotificationDispatcher:
    """
    Hands notifications to a sink on a background thread pool.

    dispatch() returns as soon as the event is queued. The outcome is
    logged from the worker; nothing the sink does reaches the caller.
    """

    def __init__(self, sink, max_workers: int = 2):
        self.sink = sink
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='notify')
        self._pending: Set[Future] = set()
        self._lock = Lock()

    def dispatch(self, event: Event) -> Future:
        future = self._executor.submit(self._deliver, event)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def submit(self, fn, *args) -> Future:
        """Run an arbitrary background job (e.g. the startup SMTP check)."""
        return self._executor.submit(fn, *args)

    def _deliver(self, event: Event) -> bool:
        try:
            delivered = bool(self.sink.send(event))
        except Exception:
            logger.exception(f"Notification for {event.type.value} {event.subject_id} raised")
            return False

        if delivered:
            logger.debug(f"Notification delivered for {event.type.value} {event.subject_id}")
        else:
            logger.warning(
                f"Notification not delivered for {event.type.value} {event.subject_id}; record was saved"
            )
        return delivered

    def _forget(self, future: Future):
        with self._lock:
            self._pending.discard(future)

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued notifications. Returns False if some are still running."""
        with self._lock:
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True):
        self._executor.shutdown(wait=wait_for_pending)
