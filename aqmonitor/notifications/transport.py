"""Transports: the I/O boundary that actually hands a message to a mail system.

A transport exposes one operation, ``send(address, subject, body)``, which
returns on success and raises DeliveryError on failure. The delivery queue
guarantees it is never called concurrently by the queue itself.
"""

import smtplib
import ssl
import threading
from email.message import EmailMessage
from typing import Callable, List, Optional, Protocol, Tuple

from email_validator import EmailNotValidError, validate_email

from aqmonitor.config.environment import EnvironmentConfig
from aqmonitor.logging import get_logger

from .models import DeliveryError

logger = get_logger(__name__, component="transport")


class Transport(Protocol):
    """Anything that can deliver a plain-text message to one address."""

    def send(self, address: str, subject: str, body: str) -> None:
        ...


def validate_recipient(address: str) -> str:
    """Validate and normalize a recipient address.

    Raises:
        DeliveryError: If the address is not a valid email address
    """
    try:
        return validate_email(address, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise DeliveryError(f"Invalid recipient address '{address}': {e}") from e


def build_sender_address(env_config: EnvironmentConfig) -> str:
    """Build the 'From' address for outgoing emails.

    Uses SMTP_SENDER_NAME with SMTP_USER when credentials are configured,
    otherwise a noreply address at the SMTP host.

    Returns:
        Formatted sender address (e.g., "Air Quality Monitor <alerts@example.com>")
    """
    sender_email = env_config.smtp_user or f"noreply@{env_config.smtp_host}"
    return f"{env_config.smtp_sender_name} <{sender_email}>"


class SMTPTransport:
    """SMTP transport with connection reuse.

    The connection is opened lazily, reused for consecutive messages and
    rotated after ``max_messages_per_connection`` sends. Any SMTP or network
    error discards the connection so the next send starts fresh.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        use_tls: bool = True,
        max_messages_per_connection: int = 100,
        timeout: float = 30,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize the transport.

        Args:
            env_config: Environment configuration with SMTP settings
            use_tls: Whether to upgrade plain connections with STARTTLS
            max_messages_per_connection: Sends per connection before reconnecting
            timeout: Socket timeout in seconds
            smtp_factory: Factory for SMTP instances (for mocking)
            smtp_ssl_factory: Factory for SMTP_SSL instances (for mocking)
        """
        if max_messages_per_connection < 1:
            raise ValueError("max_messages_per_connection must be at least 1")

        self.env_config = env_config
        self.use_tls = use_tls
        self.max_messages_per_connection = max_messages_per_connection
        self.timeout = timeout
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL
        self.sender = build_sender_address(env_config)

        self._lock = threading.Lock()
        self._smtp = None
        self._sent_on_connection = 0

    def build_message(self, address: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = address
        message.set_content(body)
        return message

    def send(self, address: str, subject: str, body: str) -> None:
        """Send one plain-text message.

        Raises:
            DeliveryError: If the recipient is invalid or delivery fails
        """
        recipient = validate_recipient(address)
        message = self.build_message(recipient, subject, body)

        with self._lock:
            try:
                smtp = self._ensure_connection()
                smtp.send_message(message)
            except smtplib.SMTPException as e:
                self._close_connection()
                raise DeliveryError(f"SMTP error during message delivery: {e}") from e
            except OSError as e:
                self._close_connection()
                raise DeliveryError(f"Network error during SMTP delivery: {e}") from e

            self._sent_on_connection += 1
            logger.debug(
                f"Message handed to {self.env_config.smtp_host}",
                extra={
                    "event": "transport.smtp.sent",
                    "sent_on_connection": self._sent_on_connection,
                },
            )

            if self._sent_on_connection >= self.max_messages_per_connection:
                logger.debug(
                    "Rotating SMTP connection",
                    extra={"event": "transport.smtp.rotate"},
                )
                self._close_connection()

    def verify(self) -> bool:
        """Check that the server is reachable and accepts our credentials.

        Returns:
            True if a connection (and login, when configured) succeeded
        """
        with self._lock:
            try:
                self._ensure_connection()
            except (smtplib.SMTPException, OSError) as e:
                self._close_connection()
                logger.error(
                    f"Email configuration error: {e}",
                    extra={"event": "transport.smtp.verify_failed", "error_type": type(e).__name__},
                )
                return False

            self._close_connection()

        logger.info(
            "Email server is ready to take messages",
            extra={"event": "transport.smtp.verified", "smtp_host": self.env_config.smtp_host},
        )
        return True

    def close(self) -> None:
        """Close the pooled connection, if any."""
        with self._lock:
            self._close_connection()

    def _ensure_connection(self):
        if self._smtp is not None:
            return self._smtp

        host = self.env_config.smtp_host
        port = self.env_config.smtp_port

        if port == 465:
            logger.debug(f"Connecting to {host}:{port} with implicit TLS")
            smtp = self.smtp_ssl_factory(
                host, port, timeout=self.timeout, context=ssl.create_default_context()
            )
        else:
            logger.debug(f"Connecting to {host}:{port}")
            smtp = self.smtp_factory(host, port, timeout=self.timeout)

        try:
            if port != 465 and self.use_tls:
                smtp.starttls(context=ssl.create_default_context())
            if self.env_config.smtp_user and self.env_config.smtp_pass:
                smtp.login(self.env_config.smtp_user, self.env_config.smtp_pass)
        except Exception:
            _quietly_quit(smtp)
            raise

        self._smtp = smtp
        self._sent_on_connection = 0
        return smtp

    def _close_connection(self) -> None:
        if self._smtp is not None:
            _quietly_quit(self._smtp)
        self._smtp = None
        self._sent_on_connection = 0


def _quietly_quit(smtp) -> None:
    try:
        smtp.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Error closing SMTP connection: {e}")


class LogTransport:
    """Dry-run transport that logs messages instead of sending them."""

    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, address: str, subject: str, body: str) -> None:
        self.sent.append((address, subject, body))
        logger.info(
            f"[dry-run] {subject} -> {address}",
            extra={"event": "transport.dry_run.sent", "body_length": len(body)},
        )
