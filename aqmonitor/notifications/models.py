"""Exceptions and result types for the notification pipeline."""

from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from aqmonitor.domain.models import DeliveryOutcome, MessageRequest
from aqmonitor.policy.models import Decision


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when a message template is missing or fails to render."""

    pass


class DeliveryError(NotificationError):
    """Raised by a transport when a message could not be handed off.

    Covers authentication, network and quota failures. The delivery queue
    never lets this escape the worker; it becomes a failed DeliveryOutcome.
    """

    pass


class NotificationsDisabledError(NotificationError):
    """Raised when a user-requested message targets a user with email off."""

    pass


class QueueClosedError(NotificationError):
    """Raised by submit() after the delivery queue has been closed."""

    pass


class QueueFullError(NotificationError):
    """Raised by submit() when a bounded delivery queue is at capacity."""

    pass


@dataclass
class AlertDispatch:
    """Result of running a reading through the alert path.

    Attributes:
        user_id: Addressee
        decision: What the policy decided
        request: The rendered message (None when suppressed)
        handle: Pending delivery outcome (None when suppressed)
        evaluated_at: The injected evaluation time, also the new cooldown anchor
    """

    user_id: str
    decision: Decision
    evaluated_at: datetime
    request: Optional[MessageRequest] = None
    handle: Optional["Future[DeliveryOutcome]"] = None

    @property
    def queued(self) -> bool:
        return self.handle is not None

    def wait(self, timeout: Optional[float] = None) -> Optional[DeliveryOutcome]:
        """Block until the alert is delivered; None if nothing was queued."""
        if self.handle is None:
            return None
        return self.handle.result(timeout=timeout)
