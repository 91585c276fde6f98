"""Domain models for the Air Quality Monitor notification core."""

from .models import (
    DEFAULT_BAD_THRESHOLD,
    DEFAULT_COOLDOWN_MS,
    DEFAULT_GOOD_THRESHOLD,
    DeliveryOutcome,
    DeliveryStatus,
    MessageRequest,
    NotificationPreferences,
    User,
)

__all__ = [
    "NotificationPreferences",
    "User",
    "MessageRequest",
    "DeliveryOutcome",
    "DeliveryStatus",
    "DEFAULT_GOOD_THRESHOLD",
    "DEFAULT_BAD_THRESHOLD",
    "DEFAULT_COOLDOWN_MS",
]
