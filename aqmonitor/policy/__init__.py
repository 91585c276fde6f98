"""Alert policy for threshold notifications."""

from .engine import NotificationPolicy, cooldown_active, evaluate
from .models import AlertKind, Decision, SuppressionReason

__all__ = [
    "evaluate",
    "cooldown_active",
    "NotificationPolicy",
    "Decision",
    "AlertKind",
    "SuppressionReason",
]
