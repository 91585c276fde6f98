"""Notification pipeline for air quality alerts and account messages.

This module provides:
- NotificationService: Renders messages, applies the alert policy, queues sends
- DeliveryQueue: Single-worker FIFO queue with pacing in front of a transport
- SMTPTransport / LogTransport: Transports that actually deliver (or log) mail
- TemplateRenderer: Jinja2-based plain-text message rendering
"""

from .models import (
    AlertDispatch,
    DeliveryError,
    NotificationError,
    NotificationsDisabledError,
    NotificationTemplateError,
    QueueClosedError,
    QueueFullError,
)
from .queue import DeliveryQueue, QueueState
from .service import NotificationService
from .templates import SUBJECTS, MessageTemplate, TemplateRenderer
from .transport import (
    LogTransport,
    SMTPTransport,
    Transport,
    build_sender_address,
    validate_recipient,
)

__all__ = [
    # Main service
    "NotificationService",
    "AlertDispatch",
    # Delivery
    "DeliveryQueue",
    "QueueState",
    "Transport",
    "SMTPTransport",
    "LogTransport",
    # Templates
    "TemplateRenderer",
    "MessageTemplate",
    "SUBJECTS",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "NotificationsDisabledError",
    "DeliveryError",
    "QueueClosedError",
    "QueueFullError",
    # Utilities
    "build_sender_address",
    "validate_recipient",
]
