"""Core data contracts shared by the policy, the delivery queue and the directory.

This module defines:
- NotificationPreferences: per-user alert settings embedded in a User
- User: the addressee and holder of the preferences
- MessageRequest: an immutable message to hand to the transport
- DeliveryOutcome: the per-message result reported back to the submitter
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, EmailStr, Field, field_validator

from aqmonitor.utils.timestamps import ensure_utc, utc_now

DEFAULT_GOOD_THRESHOLD = 50.0
DEFAULT_BAD_THRESHOLD = 100.0
DEFAULT_COOLDOWN_MS = 3_600_000


class NotificationPreferences(BaseModel):
    """Per-user notification settings.

    good_threshold and bad_threshold are independent values; nothing here
    requires good_threshold < bad_threshold. When a reading satisfies both,
    the policy picks the good alert.

    last_sent_at is the cooldown anchor. It is written after an alert has been
    accepted by the delivery queue, not after the transport confirms delivery.
    """

    email_enabled: bool = Field(True, description="Master switch for user-facing email")
    good_alert_enabled: bool = Field(True, description="Send alerts when air is good")
    bad_alert_enabled: bool = Field(True, description="Send alerts when air is poor")
    good_threshold: float = Field(
        DEFAULT_GOOD_THRESHOLD, description="Readings at or below this are 'good'"
    )
    bad_threshold: float = Field(
        DEFAULT_BAD_THRESHOLD, description="Readings at or above this are 'bad'"
    )
    last_sent_at: Optional[datetime] = Field(
        None, description="When the last threshold alert was queued (UTC)"
    )
    cooldown_ms: int = Field(
        DEFAULT_COOLDOWN_MS, ge=0, description="Minimum gap between two alerts"
    )

    @field_validator("last_sent_at")
    @classmethod
    def normalize_last_sent_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store the cooldown anchor as aware UTC."""
        return ensure_utc(v)

    model_config = {"validate_assignment": True}


class User(BaseModel):
    """A registered account as seen by the notification core."""

    id: str = Field(default_factory=lambda: uuid4().hex, description="Opaque user id")
    username: str = Field(..., min_length=1, description="Display name used in greetings")
    email: EmailStr = Field(..., description="Delivery address")
    name: Optional[str] = Field(None, description="Full name")
    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )
    last_login_at: Optional[datetime] = None
    last_logout_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        """Strip whitespace from the username."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("username cannot be empty or whitespace-only")
        return stripped

    @field_validator("last_login_at", "last_logout_at", "created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetimes are timezone-aware and in UTC."""
        return ensure_utc(v)

    model_config = {"validate_assignment": True}


class MessageRequest(BaseModel):
    """One message to deliver. Equal requests are still sent independently."""

    recipient_address: str = Field(..., min_length=1)
    subject: str
    body: str

    model_config = {"frozen": True}


class DeliveryStatus(str, Enum):
    """Terminal state of a single send attempt."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of handing one MessageRequest to the transport.

    Attributes:
        request: The request that was attempted
        status: SUCCESS or FAILURE
        reason: Human-readable failure reason (None on success)
        error: The exception raised by the transport (None on success)
        completed_at: When the attempt finished (UTC)
    """

    request: MessageRequest
    status: DeliveryStatus
    reason: Optional[str] = None
    error: Optional[BaseException] = None
    completed_at: datetime = field(default_factory=utc_now)

    @classmethod
    def success(cls, request: MessageRequest) -> "DeliveryOutcome":
        return cls(request=request, status=DeliveryStatus.SUCCESS)

    @classmethod
    def failure(cls, request: MessageRequest, error: BaseException) -> "DeliveryOutcome":
        return cls(
            request=request,
            status=DeliveryStatus.FAILURE,
            reason=str(error) or type(error).__name__,
            error=error,
        )

    def is_success(self) -> bool:
        """Check if the transport accepted the message.

        Returns:
            True if status is SUCCESS, False otherwise
        """
        return self.status is DeliveryStatus.SUCCESS
