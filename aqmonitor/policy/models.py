"""Data models for alert policy decisions."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AlertKind(str, Enum):
    """Which threshold alert template applies."""

    GOOD = "good"
    BAD = "bad"


class SuppressionReason(str, Enum):
    """Why an alert was not sent."""

    EMAIL_DISABLED = "email disabled"
    COOLDOWN_ACTIVE = "cooldown active"
    NO_THRESHOLD_CROSSED = "no threshold crossed"


@dataclass(frozen=True)
class Decision:
    """Outcome of evaluating a reading against a user's preferences.

    Exactly one of (kind, reason) is set: kind when the alert fires, reason
    when it is suppressed. A suppressed decision is not an error.

    Attributes:
        fire: True if an alert should be sent
        kind: GOOD or BAD when firing
        reading: The reading that was evaluated
        threshold: The threshold that was crossed when firing
        reason: SuppressionReason when suppressed
    """

    fire: bool
    reading: float
    kind: Optional[AlertKind] = None
    threshold: Optional[float] = None
    reason: Optional[SuppressionReason] = None

    @classmethod
    def fired(cls, kind: AlertKind, reading: float, threshold: float) -> "Decision":
        return cls(fire=True, reading=reading, kind=kind, threshold=threshold)

    @classmethod
    def suppressed(cls, reason: SuppressionReason, reading: float) -> "Decision":
        return cls(fire=False, reading=reading, reason=reason)

    @property
    def suppressed_reason(self) -> Optional[str]:
        """Plain-string reason, convenient for logs and API responses."""
        return self.reason.value if self.reason is not None else None
