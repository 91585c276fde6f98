"""Notification service: the boundary between account events and delivery.

This module provides the NotificationService class, which:
- renders lifecycle messages (welcome, login, logout, profile update) and
  hands them straight to the delivery queue
- runs threshold alerts through the policy and, when one fires, renders and
  queues exactly one message, then moves the user's cooldown anchor
- forwards arbitrary caller-built messages to the queue

Lifecycle messages are never gated by cooldown or alert preferences.
"""

import logging
from concurrent.futures import Future
from datetime import datetime
from typing import Optional, Protocol

from aqmonitor.domain.models import (
    DeliveryOutcome,
    MessageRequest,
    NotificationPreferences,
    User,
)
from aqmonitor.logging import get_logger
from aqmonitor.logging.context import log_context
from aqmonitor.policy.engine import NotificationPolicy
from aqmonitor.policy.models import AlertKind, Decision
from aqmonitor.utils.numbers import (
    format_number,
    is_finite_number,
    round_half_away_from_zero,
)
from aqmonitor.utils.timestamps import format_for_display, utc_now

from .models import AlertDispatch, NotificationsDisabledError
from .queue import DeliveryQueue
from .templates import MessageTemplate, TemplateRenderer

logger = get_logger(__name__, component="notification")

ALERT_TEMPLATES = {
    AlertKind.GOOD: MessageTemplate.GOOD_AIR_ALERT,
    AlertKind.BAD: MessageTemplate.BAD_AIR_ALERT,
}


class CooldownStore(Protocol):
    """The slice of the user directory the alert path needs."""

    def update_last_sent_at(self, user_id: str, sent_at: datetime) -> None:
        ...


class NotificationService:
    """Decides what to send and hands it to the delivery queue.

    The service never talks to the transport directly and never waits for a
    delivery to finish; callers that care hold on to the returned handles.
    """

    def __init__(
        self,
        queue: DeliveryQueue,
        renderer: Optional[TemplateRenderer] = None,
        policy: Optional[NotificationPolicy] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            queue: Delivery queue that owns the transport
            renderer: Template renderer (creates default if None)
            policy: Alert policy (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.queue = queue
        self.renderer = renderer or TemplateRenderer()
        self.policy = policy or NotificationPolicy()
        self.logger = logger_instance or logger

    def submit_message(self, request: MessageRequest) -> "Future[DeliveryOutcome]":
        """Queue a message without any gating.

        Raises:
            QueueClosedError: If the queue has been closed
            QueueFullError: If the queue is bounded and full
        """
        return self.queue.submit(request)

    def evaluate_alert(
        self, preferences: NotificationPreferences, reading: float, now: datetime
    ) -> Decision:
        """Evaluate a reading against preferences. Pure; queues nothing."""
        return self.policy.evaluate(preferences, reading, now)

    # Lifecycle messages

    def notify_welcome(self, user: User) -> "Future[DeliveryOutcome]":
        return self._send_lifecycle(MessageTemplate.WELCOME, user)

    def notify_login(
        self, user: User, occurred_at: Optional[datetime] = None
    ) -> "Future[DeliveryOutcome]":
        return self._send_lifecycle(MessageTemplate.LOGIN, user, occurred_at)

    def notify_logout(
        self, user: User, occurred_at: Optional[datetime] = None
    ) -> "Future[DeliveryOutcome]":
        return self._send_lifecycle(MessageTemplate.LOGOUT, user, occurred_at)

    def notify_profile_updated(
        self, user: User, occurred_at: Optional[datetime] = None
    ) -> "Future[DeliveryOutcome]":
        return self._send_lifecycle(MessageTemplate.PROFILE_UPDATED, user, occurred_at)

    def send_custom_message(self, user: User, subject: str, body: str) -> "Future[DeliveryOutcome]":
        """Queue a caller-written message for a user.

        Only the email_enabled switch applies; cooldown does not.

        Raises:
            NotificationsDisabledError: If the user turned email off
        """
        if not user.notification_preferences.email_enabled:
            raise NotificationsDisabledError(
                f"Email notifications are disabled for user {user.id}"
            )

        request = MessageRequest(recipient_address=user.email, subject=subject, body=body)
        with log_context(user_id=user.id):
            self.logger.info(
                "Queueing custom message",
                extra={"event": "notification.custom.queued", "subject": subject},
            )
            return self.submit_message(request)

    # Threshold alerts

    def dispatch_alert(
        self,
        user: User,
        reading: float,
        now: Optional[datetime] = None,
        user_repo: Optional[CooldownStore] = None,
    ) -> AlertDispatch:
        """Evaluate a reading for a user and queue the alert if one fires.

        When the queue accepts the alert, the cooldown anchor is set to ``now``
        both in the directory (when ``user_repo`` is given) and on ``user``.
        A rejected submission propagates and leaves the anchor untouched.

        Args:
            user: Addressee, with current preferences
            reading: Finite AQI value
            now: Evaluation time (defaults to the current UTC time)
            user_repo: Directory to persist the new cooldown anchor

        Returns:
            AlertDispatch with the decision and, if queued, the delivery handle

        Raises:
            ValueError: If the reading is not a finite number
            QueueClosedError, QueueFullError: If the queue rejects the alert
        """
        if not is_finite_number(reading):
            raise ValueError(f"Reading must be a finite number, got {reading!r}")

        now = now or utc_now()

        with log_context(user_id=user.id):
            decision = self.evaluate_alert(user.notification_preferences, reading, now)

            if not decision.fire:
                self.logger.info(
                    f"Alert suppressed: {decision.suppressed_reason}",
                    extra={
                        "event": "policy.suppressed",
                        "reason": decision.suppressed_reason,
                        "reading": reading,
                    },
                )
                return AlertDispatch(user_id=user.id, decision=decision, evaluated_at=now)

            request = self.renderer.build_request(
                ALERT_TEMPLATES[decision.kind],
                user.email,
                {
                    "username": user.username,
                    "aqi": round_half_away_from_zero(reading),
                    "threshold": format_number(decision.threshold),
                },
            )
            handle = self.submit_message(request)

            if user_repo is not None:
                user_repo.update_last_sent_at(user.id, now)
            user.notification_preferences.last_sent_at = now

            self.logger.info(
                f"{decision.kind.value.capitalize()} air quality alert queued",
                extra={
                    "event": "policy.fired",
                    "alert_kind": decision.kind.value,
                    "reading": reading,
                    "threshold": decision.threshold,
                },
            )

        return AlertDispatch(
            user_id=user.id,
            decision=decision,
            evaluated_at=now,
            request=request,
            handle=handle,
        )

    def _send_lifecycle(
        self,
        template: MessageTemplate,
        user: User,
        occurred_at: Optional[datetime] = None,
    ) -> "Future[DeliveryOutcome]":
        context = {"username": user.username}
        if template is not MessageTemplate.WELCOME:
            context["occurred_at"] = format_for_display(occurred_at or utc_now())

        request = self.renderer.build_request(template, user.email, context)
        with log_context(user_id=user.id):
            handle = self.submit_message(request)
            self.logger.info(
                f"Queued {template.value} message",
                extra={"event": "notification.lifecycle.queued", "template": template.value},
            )
        return handle
