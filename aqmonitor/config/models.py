"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from aqmonitor.domain.models import (
    DEFAULT_BAD_THRESHOLD,
    DEFAULT_GOOD_THRESHOLD,
    NotificationPreferences,
)

from .duration import DurationParseError, parse_duration


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _duration_ms(value: Union[str, int], allow_zero: bool) -> int:
    try:
        return parse_duration(value, allow_zero=allow_zero)
    except DurationParseError as e:
        raise ValueError(str(e)) from e


class DeliveryConfig(BaseModel):
    """Delivery queue and transport settings."""

    pacing_interval: Union[str, int] = Field(
        "1s", description="Delay between consecutive sends (duration or ms)"
    )
    max_pending: Optional[int] = Field(
        None, ge=1, description="Reject submissions beyond this many queued messages"
    )
    max_messages_per_connection: int = Field(
        100, ge=1, description="Rotate the SMTP connection after this many messages"
    )

    # Computed field
    pacing_interval_ms: Optional[int] = None

    @model_validator(mode="after")
    def compute_pacing(self):
        self.pacing_interval_ms = _duration_ms(self.pacing_interval, allow_zero=True)
        return self

    @property
    def pacing_interval_seconds(self) -> float:
        return self.pacing_interval_ms / 1000.0


class PreferenceDefaults(BaseModel):
    """Notification preferences assigned to newly registered users."""

    email_enabled: bool = True
    good_alert_enabled: bool = True
    bad_alert_enabled: bool = True
    good_threshold: float = Field(DEFAULT_GOOD_THRESHOLD, description="Good AQI threshold")
    bad_threshold: float = Field(DEFAULT_BAD_THRESHOLD, description="Bad AQI threshold")
    cooldown: Union[str, int] = Field(
        "1h", description="Minimum time between two alerts (duration or ms)"
    )

    # Computed field
    cooldown_ms: Optional[int] = None

    @model_validator(mode="after")
    def compute_cooldown(self):
        self.cooldown_ms = _duration_ms(self.cooldown, allow_zero=True)
        return self

    def build(self) -> NotificationPreferences:
        """Create a fresh NotificationPreferences from these defaults."""
        return NotificationPreferences(
            email_enabled=self.email_enabled,
            good_alert_enabled=self.good_alert_enabled,
            bad_alert_enabled=self.bad_alert_enabled,
            good_threshold=self.good_threshold,
            bad_threshold=self.bad_threshold,
            cooldown_ms=self.cooldown_ms,
        )


class EmailConfig(BaseModel):
    """Email transport settings."""

    use_tls: bool = Field(True, description="Use TLS/STARTTLS for secure connection")
    verify_on_startup: bool = Field(
        True, description="Check SMTP connectivity when the service starts"
    )
    timeout: int = Field(30, ge=1, le=300, description="SMTP socket timeout in seconds")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the Air Quality Monitor notifier."""

    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    preferences: PreferenceDefaults = Field(default_factory=PreferenceDefaults)
    email: EmailConfig = Field(default_factory=EmailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("delivery", "preferences", "email", "logging", mode="before")
    @classmethod
    def none_means_defaults(cls, v):
        """Treat an empty YAML section (``delivery:``) as all defaults."""
        return {} if v is None else v
