"""Alert policy: decides whether a reading warrants a threshold alert.

The evaluation order is fixed:
1. Email channel disabled -> suppressed
2. Cooldown still running since the last alert -> suppressed
3. Reading at or below the good threshold (good alerts on) -> GOOD
4. Reading at or above the bad threshold (bad alerts on) -> BAD
5. Otherwise -> suppressed

The function is pure. Persisting the new cooldown anchor is the caller's job
and happens only after the alert has been accepted by the delivery queue.
"""

from datetime import datetime

from aqmonitor.domain.models import NotificationPreferences
from aqmonitor.utils.timestamps import ensure_utc, milliseconds

from .models import AlertKind, Decision, SuppressionReason


def evaluate(preferences: NotificationPreferences, reading: float, now: datetime) -> Decision:
    """Evaluate a reading against a user's notification preferences.

    Args:
        preferences: The user's NotificationPreferences (must not be None)
        reading: Finite AQI value
        now: Evaluation time; injected so results are deterministic

    Returns:
        Decision describing whether to fire and which template applies

    Raises:
        ValueError: If preferences is None
    """
    if preferences is None:
        raise ValueError("preferences must not be None")

    if not preferences.email_enabled:
        return Decision.suppressed(SuppressionReason.EMAIL_DISABLED, reading)

    if cooldown_active(preferences, now):
        return Decision.suppressed(SuppressionReason.COOLDOWN_ACTIVE, reading)

    # Good is checked first so overlapping thresholds resolve to GOOD
    if reading <= preferences.good_threshold and preferences.good_alert_enabled:
        return Decision.fired(AlertKind.GOOD, reading, preferences.good_threshold)

    if reading >= preferences.bad_threshold and preferences.bad_alert_enabled:
        return Decision.fired(AlertKind.BAD, reading, preferences.bad_threshold)

    return Decision.suppressed(SuppressionReason.NO_THRESHOLD_CROSSED, reading)


def cooldown_active(preferences: NotificationPreferences, now: datetime) -> bool:
    """Check whether the cooldown window since the last alert is still open.

    The window is half-open: at exactly last_sent_at + cooldown_ms the user
    is eligible again.
    """
    if preferences.last_sent_at is None:
        return False

    elapsed = ensure_utc(now) - preferences.last_sent_at
    return elapsed < milliseconds(preferences.cooldown_ms)


class NotificationPolicy:
    """Stateless object wrapper around evaluate()."""

    def evaluate(
        self, preferences: NotificationPreferences, reading: float, now: datetime
    ) -> Decision:
        return evaluate(preferences, reading, now)
