"""Environment variable loading and validation."""

import os
from typing import List, Optional

from .exceptions import ConfigurationError

DEFAULT_SENDER_NAME = "Air Quality Monitor"
DEFAULT_DATABASE_URL = "sqlite:///./data/aqmonitor.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Secrets and deployment-specific settings read from the environment."""

    def __init__(
        self,
        smtp_host: Optional[str],
        smtp_port: Optional[int],
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        smtp_sender_name: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.smtp_sender_name = smtp_sender_name or DEFAULT_SENDER_NAME
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_port)


def load_environment_config(require_smtp: bool = True) -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Required environment variables (unless require_smtp is False):
    - SMTP_HOST: SMTP server hostname
    - SMTP_PORT: SMTP server port (1-65535)

    Optional environment variables:
    - SMTP_USER / SMTP_PASS: SMTP credentials (both or neither)
    - SMTP_SENDER_NAME: Display name for the From header
    - LOG_LEVEL: Override log level
    - DATABASE_URL: User directory URL (default: sqlite:///./data/aqmonitor.db)

    Args:
        require_smtp: Whether missing SMTP settings are an error (dry runs
            do not need a mail server)

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If variables are missing or invalid
    """
    errors: List[str] = []

    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    smtp_sender_name = os.getenv("SMTP_SENDER_NAME")
    log_level = os.getenv("LOG_LEVEL")
    database_url = os.getenv("DATABASE_URL")

    if require_smtp:
        if not smtp_host:
            errors.append("Missing required environment variable: SMTP_HOST")
        if not smtp_port_str:
            errors.append("Missing required environment variable: SMTP_PORT")

    smtp_port = None
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if not 1 <= smtp_port <= 65535:
                errors.append(
                    f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535."
                )
        except ValueError:
            errors.append(
                f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer."
            )

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if bool(smtp_user) != bool(smtp_pass):
        missing = "SMTP_PASS" if smtp_user else "SMTP_USER"
        present = "SMTP_USER" if smtp_user else "SMTP_PASS"
        errors.append(
            f"{present} is set but {missing} is not. Both must be set for authentication."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Use --dry-run to log messages instead of sending them",
                "Verify SMTP_PORT is a number between 1 and 65535",
            ],
        )

    return EnvironmentConfig(
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        smtp_sender_name=smtp_sender_name,
        log_level=log_level.upper() if log_level else None,
        database_url=database_url,
    )
