"""Unit tests for notification service.

Tests the NotificationService for:
- Threshold alerts through the policy (fire and suppress)
- Cooldown anchor updates only after the queue accepts the alert
- Rendering of alert values (rounding, threshold formatting)
- Lifecycle messages bypassing cooldown and preferences
- Custom messages gated only by email_enabled
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from aqmonitor.domain.models import MessageRequest, NotificationPreferences, User
from aqmonitor.notifications.models import (
    NotificationsDisabledError,
    QueueClosedError,
    QueueFullError,
)
from aqmonitor.notifications.queue import DeliveryQueue
from aqmonitor.notifications.service import NotificationService
from aqmonitor.notifications.templates import SUBJECTS, MessageTemplate
from aqmonitor.policy import AlertKind, SuppressionReason
from tests.helpers import RecordingTransport, SleepRecorder

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
TIMEOUT = 5


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def queue(transport):
    q = DeliveryQueue(transport, pacing_interval=0, sleep=SleepRecorder())
    yield q
    q.close(timeout=TIMEOUT)


@pytest.fixture
def service(queue):
    return NotificationService(queue)


@pytest.fixture
def user():
    return User(id="u-1", username="ada", email="ada@example.com", name="Ada Lovelace")


@pytest.fixture
def user_repo():
    return Mock()


class TestDispatchAlert:
    """Threshold alerts through the policy."""

    def test_good_reading_fires_good_alert(self, service, transport, user, user_repo):
        dispatch = service.dispatch_alert(user, 42, NOW, user_repo)

        assert dispatch.queued
        assert dispatch.decision.kind == AlertKind.GOOD
        assert dispatch.wait(TIMEOUT).is_success()

        address, subject, body = transport.delivered[0]
        assert address == "ada@example.com"
        assert subject == SUBJECTS[MessageTemplate.GOOD_AIR_ALERT]
        assert "Hello ada," in body
        assert "(AQI) is 42" in body
        assert "threshold of 50" in body

    def test_bad_reading_fires_bad_alert(self, service, transport, user, user_repo):
        dispatch = service.dispatch_alert(user, 150.4, NOW, user_repo)

        assert dispatch.decision.kind == AlertKind.BAD
        dispatch.wait(TIMEOUT)

        _, subject, body = transport.delivered[0]
        assert subject == "⚠ Poor Air Quality Alert"
        assert "(AQI) is 150," in body
        assert "threshold of 100" in body

    @pytest.mark.parametrize("reading, shown", [(42.5, "43"), (100.5, "101"), (-0.5, "-1")])
    def test_reading_rounded_half_away_from_zero(self, service, transport, user, reading, shown):
        service.dispatch_alert(user, reading, NOW).wait(TIMEOUT)

        assert f"(AQI) is {shown}" in transport.delivered[0][2]

    def test_fire_updates_cooldown_anchor(self, service, user, user_repo):
        dispatch = service.dispatch_alert(user, 10, NOW, user_repo)

        user_repo.update_last_sent_at.assert_called_once_with("u-1", NOW)
        assert user.notification_preferences.last_sent_at == NOW
        assert dispatch.evaluated_at == NOW

    def test_suppressed_reading_queues_nothing(self, service, transport, user, user_repo):
        dispatch = service.dispatch_alert(user, 75, NOW, user_repo)

        assert not dispatch.queued
        assert dispatch.request is None
        assert dispatch.wait() is None
        assert dispatch.decision.reason == SuppressionReason.NO_THRESHOLD_CROSSED
        user_repo.update_last_sent_at.assert_not_called()
        assert user.notification_preferences.last_sent_at is None
        assert transport.calls == []

    def test_second_alert_within_cooldown_suppressed(self, service, transport, user, user_repo):
        service.dispatch_alert(user, 10, NOW, user_repo).wait(TIMEOUT)

        second = service.dispatch_alert(user, 200, NOW + timedelta(minutes=5), user_repo)

        assert second.decision.reason == SuppressionReason.COOLDOWN_ACTIVE
        assert len(transport.calls) == 1
        assert user.notification_preferences.last_sent_at == NOW

    def test_email_disabled_suppressed(self, service, user, user_repo):
        user.notification_preferences.email_enabled = False

        dispatch = service.dispatch_alert(user, 500, NOW, user_repo)

        assert dispatch.decision.reason == SuppressionReason.EMAIL_DISABLED
        user_repo.update_last_sent_at.assert_not_called()

    def test_anchor_moves_even_if_delivery_fails(self, queue, user, user_repo):
        failing = RecordingTransport(fail_for={"ada@example.com"})
        service = NotificationService(DeliveryQueue(failing, pacing_interval=0))

        dispatch = service.dispatch_alert(user, 10, NOW, user_repo)

        assert not dispatch.wait(TIMEOUT).is_success()
        user_repo.update_last_sent_at.assert_called_once_with("u-1", NOW)

    def test_rejected_submit_leaves_anchor_untouched(self, service, queue, user, user_repo):
        queue.close()

        with pytest.raises(QueueClosedError):
            service.dispatch_alert(user, 10, NOW, user_repo)

        user_repo.update_last_sent_at.assert_not_called()
        assert user.notification_preferences.last_sent_at is None

    def test_full_queue_leaves_anchor_untouched(self, user, user_repo):
        queue = Mock()
        queue.submit.side_effect = QueueFullError("full")
        service = NotificationService(queue)

        with pytest.raises(QueueFullError):
            service.dispatch_alert(user, 10, NOW, user_repo)

        user_repo.update_last_sent_at.assert_not_called()

    @pytest.mark.parametrize("reading", [float("nan"), float("inf"), float("-inf"), "42", True])
    def test_non_finite_reading_rejected(self, service, user, reading):
        with pytest.raises(ValueError):
            service.dispatch_alert(user, reading, NOW)

    def test_without_repo_updates_in_memory_only(self, service, user):
        service.dispatch_alert(user, 10, NOW)

        assert user.notification_preferences.last_sent_at == NOW


class TestLifecycleMessages:
    """Welcome/login/logout/profile messages are never gated."""

    @pytest.mark.parametrize(
        "method, template",
        [
            ("notify_login", MessageTemplate.LOGIN),
            ("notify_logout", MessageTemplate.LOGOUT),
            ("notify_profile_updated", MessageTemplate.PROFILE_UPDATED),
        ],
    )
    def test_timestamped_messages(self, service, transport, user, method, template):
        getattr(service, method)(user, NOW).result(timeout=TIMEOUT)

        _, subject, body = transport.delivered[0]
        assert subject == SUBJECTS[template]
        assert "2026-10-19 12:00:00 UTC" in body
        assert "Hello ada," in body

    def test_welcome(self, service, transport, user):
        service.notify_welcome(user).result(timeout=TIMEOUT)

        _, subject, body = transport.delivered[0]
        assert subject == "Welcome to Air Quality Monitor!"
        assert body.startswith("Welcome ada!")

    def test_lifecycle_ignores_cooldown_and_disabled_email(self, service, transport, user):
        user.notification_preferences = NotificationPreferences(
            email_enabled=False, last_sent_at=NOW
        )

        service.notify_login(user, NOW).result(timeout=TIMEOUT)
        service.notify_logout(user, NOW).result(timeout=TIMEOUT)

        assert len(transport.delivered) == 2


class TestCustomMessages:
    def test_custom_message_sent_verbatim(self, service, transport, user):
        service.send_custom_message(user, "Hello", "Plain body").result(timeout=TIMEOUT)

        assert transport.delivered == [("ada@example.com", "Hello", "Plain body")]

    def test_custom_message_ignores_cooldown(self, service, transport, user):
        user.notification_preferences.last_sent_at = NOW

        service.send_custom_message(user, "Hi", "Body").result(timeout=TIMEOUT)

        assert len(transport.delivered) == 1

    def test_custom_message_requires_email_enabled(self, service, transport, user):
        user.notification_preferences.email_enabled = False

        with pytest.raises(NotificationsDisabledError):
            service.send_custom_message(user, "Hi", "Body")

        assert transport.calls == []


class TestSubmitAndEvaluate:
    """The two operations exposed to external callers."""

    def test_submit_message_is_ungated(self, service, transport):
        request = MessageRequest(recipient_address="x@example.com", subject="S", body="B")

        assert service.submit_message(request).result(timeout=TIMEOUT).is_success()
        assert transport.addresses == ["x@example.com"]

    def test_evaluate_alert_queues_nothing(self, service, transport, user):
        decision = service.evaluate_alert(user.notification_preferences, 10, NOW)

        assert decision.fire is True
        assert transport.calls == []
        assert user.notification_preferences.last_sent_at is None
