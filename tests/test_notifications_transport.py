"""Unit tests for mail transports.

Tests the SMTPTransport for:
- Connection handling (SMTP and SMTP_SSL)
- TLS/STARTTLS negotiation
- Authentication (with and without credentials)
- Connection reuse and rotation
- Error wrapping and connection discard
- Startup verification
and the LogTransport dry-run transport.
"""

import smtplib
from unittest.mock import MagicMock, Mock

import pytest

from aqmonitor.config.environment import EnvironmentConfig
from aqmonitor.notifications.models import DeliveryError
from aqmonitor.notifications.transport import (
    LogTransport,
    SMTPTransport,
    build_sender_address,
    validate_recipient,
)


@pytest.fixture
def env_config_with_auth():
    """Environment config with SMTP authentication."""
    return EnvironmentConfig(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_user="alerts@example.com",
        smtp_pass="secret123",
        smtp_sender_name="Air Quality Monitor",
    )


@pytest.fixture
def env_config_without_auth():
    """Environment config without SMTP authentication."""
    return EnvironmentConfig(smtp_host="smtp.example.com", smtp_port=25)


@pytest.fixture
def env_config_implicit_tls():
    """Environment config for implicit TLS (port 465)."""
    return EnvironmentConfig(
        smtp_host="smtp.gmail.com",
        smtp_port=465,
        smtp_user="alerts@gmail.com",
        smtp_pass="apppassword",
    )


def make_transport(env_config, **kwargs):
    mock_smtp = MagicMock()
    factory = Mock(return_value=mock_smtp)
    transport = SMTPTransport(env_config, smtp_factory=factory, **kwargs)
    return transport, factory, mock_smtp


def test_send_with_starttls(env_config_with_auth):
    """Test sending over STARTTLS (port 587) with authentication."""
    transport, factory, mock_smtp = make_transport(env_config_with_auth)

    transport.send("ada@example.com", "Subject", "Body\n")

    factory.assert_called_once_with("smtp.example.com", 587, timeout=30)
    mock_smtp.starttls.assert_called_once()
    mock_smtp.login.assert_called_once_with("alerts@example.com", "secret123")
    mock_smtp.send_message.assert_called_once()

    message = mock_smtp.send_message.call_args[0][0]
    assert message["To"] == "ada@example.com"
    assert message["Subject"] == "Subject"
    assert message["From"] == "Air Quality Monitor <alerts@example.com>"
    assert message.get_content() == "Body\n"


def test_send_with_implicit_tls(env_config_implicit_tls):
    """Test sending over implicit TLS (port 465)."""
    mock_smtp_ssl = MagicMock()
    ssl_factory = Mock(return_value=mock_smtp_ssl)
    plain_factory = Mock()
    transport = SMTPTransport(
        env_config_implicit_tls, smtp_factory=plain_factory, smtp_ssl_factory=ssl_factory
    )

    transport.send("ada@example.com", "Subject", "Body")

    plain_factory.assert_not_called()
    call_args = ssl_factory.call_args
    assert call_args[0] == ("smtp.gmail.com", 465)
    assert "context" in call_args[1]
    mock_smtp_ssl.starttls.assert_not_called()
    mock_smtp_ssl.login.assert_called_once_with("alerts@gmail.com", "apppassword")


def test_send_without_auth(env_config_without_auth):
    """Test no login without credentials."""
    transport, _, mock_smtp = make_transport(env_config_without_auth, use_tls=False)

    transport.send("ada@example.com", "Subject", "Body")

    mock_smtp.starttls.assert_not_called()
    mock_smtp.login.assert_not_called()
    mock_smtp.send_message.assert_called_once()


def test_connection_reused_between_sends(env_config_with_auth):
    """Consecutive sends share one connection."""
    transport, factory, mock_smtp = make_transport(env_config_with_auth)

    for i in range(3):
        transport.send(f"user{i}@example.com", "Subject", "Body")

    assert factory.call_count == 1
    assert mock_smtp.login.call_count == 1
    assert mock_smtp.send_message.call_count == 3
    mock_smtp.quit.assert_not_called()


def test_connection_rotated_after_limit(env_config_with_auth):
    """A new connection is opened after max_messages_per_connection sends."""
    transport, factory, mock_smtp = make_transport(
        env_config_with_auth, max_messages_per_connection=2
    )

    for i in range(5):
        transport.send(f"user{i}@example.com", "Subject", "Body")

    assert factory.call_count == 3
    assert mock_smtp.quit.call_count == 2


def test_smtp_error_wrapped_and_connection_discarded(env_config_with_auth):
    """SMTP errors become DeliveryError and the next send reconnects."""
    transport, factory, mock_smtp = make_transport(env_config_with_auth)
    mock_smtp.send_message.side_effect = [smtplib.SMTPException("Quota exceeded"), None]

    with pytest.raises(DeliveryError) as exc_info:
        transport.send("ada@example.com", "Subject", "Body")

    assert "SMTP error" in str(exc_info.value)
    mock_smtp.quit.assert_called_once()

    transport.send("ada@example.com", "Subject", "Body")
    assert factory.call_count == 2


def test_auth_error_wrapped(env_config_with_auth):
    """Authentication failures are delivery failures."""
    transport, _, mock_smtp = make_transport(env_config_with_auth)
    mock_smtp.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

    with pytest.raises(DeliveryError):
        transport.send("ada@example.com", "Subject", "Body")

    mock_smtp.quit.assert_called_once()
    mock_smtp.send_message.assert_not_called()


def test_network_error_wrapped(env_config_with_auth):
    """Network errors are wrapped in DeliveryError."""
    transport, _, mock_smtp = make_transport(env_config_with_auth)
    mock_smtp.starttls.side_effect = OSError("Network unreachable")

    with pytest.raises(DeliveryError) as exc_info:
        transport.send("ada@example.com", "Subject", "Body")

    assert "Network error" in str(exc_info.value)


def test_connect_failure_wrapped(env_config_with_auth):
    """Refused connections are wrapped in DeliveryError."""
    factory = Mock(side_effect=ConnectionRefusedError("refused"))
    transport = SMTPTransport(env_config_with_auth, smtp_factory=factory)

    with pytest.raises(DeliveryError):
        transport.send("ada@example.com", "Subject", "Body")


def test_invalid_recipient_rejected_before_connecting(env_config_with_auth):
    """Malformed addresses never reach the server."""
    transport, factory, _ = make_transport(env_config_with_auth)

    with pytest.raises(DeliveryError) as exc_info:
        transport.send("not-an-address", "Subject", "Body")

    assert "Invalid recipient" in str(exc_info.value)
    factory.assert_not_called()


def test_verify_success(env_config_with_auth):
    transport, factory, mock_smtp = make_transport(env_config_with_auth)

    assert transport.verify() is True
    factory.assert_called_once()
    mock_smtp.quit.assert_called_once()


def test_verify_failure(env_config_with_auth):
    transport, _, mock_smtp = make_transport(env_config_with_auth)
    mock_smtp.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

    assert transport.verify() is False


def test_close_quits_open_connection(env_config_with_auth):
    transport, _, mock_smtp = make_transport(env_config_with_auth)
    transport.send("ada@example.com", "Subject", "Body")

    transport.close()
    transport.close()

    mock_smtp.quit.assert_called_once()


def test_invalid_rotation_limit(env_config_with_auth):
    with pytest.raises(ValueError):
        SMTPTransport(env_config_with_auth, max_messages_per_connection=0)


def test_build_sender_address_with_user(env_config_with_auth):
    assert build_sender_address(env_config_with_auth) == "Air Quality Monitor <alerts@example.com>"


def test_build_sender_address_without_user(env_config_without_auth):
    assert build_sender_address(env_config_without_auth) == (
        "Air Quality Monitor <noreply@smtp.example.com>"
    )


def test_validate_recipient_normalizes_domain():
    assert validate_recipient("Ada@Example.COM") == "Ada@example.com"


def test_log_transport_records_messages():
    transport = LogTransport()

    transport.send("ada@example.com", "Subject", "Body")

    assert transport.sent == [("ada@example.com", "Subject", "Body")]
