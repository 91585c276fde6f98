"""Unit tests for domain models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from aqmonitor.domain.models import (
    DEFAULT_COOLDOWN_MS,
    DeliveryOutcome,
    DeliveryStatus,
    MessageRequest,
    NotificationPreferences,
    User,
)


class TestNotificationPreferences:
    """Tests for NotificationPreferences model."""

    def test_defaults(self):
        prefs = NotificationPreferences()

        assert prefs.email_enabled is True
        assert prefs.good_alert_enabled is True
        assert prefs.bad_alert_enabled is True
        assert prefs.good_threshold == 50
        assert prefs.bad_threshold == 100
        assert prefs.cooldown_ms == DEFAULT_COOLDOWN_MS
        assert prefs.last_sent_at is None

    def test_thresholds_may_overlap(self):
        """Nothing forces good_threshold below bad_threshold."""
        prefs = NotificationPreferences(good_threshold=120, bad_threshold=80)

        assert prefs.good_threshold > prefs.bad_threshold

    def test_negative_cooldown_rejected(self):
        with pytest.raises(ValidationError):
            NotificationPreferences(cooldown_ms=-1)

    def test_last_sent_at_normalized_to_utc(self):
        prefs = NotificationPreferences()

        prefs.last_sent_at = datetime(2026, 10, 19, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        assert prefs.last_sent_at == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        assert prefs.last_sent_at.tzinfo == timezone.utc


class TestUser:
    """Tests for User model."""

    def test_valid_user(self):
        user = User(username="ada", email="ada@example.com")

        assert len(user.id) == 32
        assert user.email == "ada@example.com"
        assert user.notification_preferences == NotificationPreferences()

    def test_ids_are_unique(self):
        assert User(username="a", email="a@example.com").id != User(username="b", email="b@example.com").id

    def test_username_stripped(self):
        assert User(username="  ada  ", email="ada@example.com").username == "ada"

    @pytest.mark.parametrize("username", ["", "   "])
    def test_blank_username_rejected(self, username):
        with pytest.raises(ValidationError):
            User(username=username, email="ada@example.com")

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            User(username="ada", email="ada-at-example")

    def test_naive_timestamps_treated_as_utc(self):
        user = User(username="ada", email="ada@example.com", created_at=datetime(2026, 10, 19, 12, 0))

        assert user.created_at.tzinfo == timezone.utc

    def test_users_do_not_share_preferences(self):
        first = User(username="a", email="a@example.com")
        second = User(username="b", email="b@example.com")

        first.notification_preferences.email_enabled = False

        assert second.notification_preferences.email_enabled is True


class TestMessageRequest:
    def test_request_is_immutable(self):
        request = MessageRequest(recipient_address="ada@example.com", subject="Hi", body="Body")

        with pytest.raises(ValidationError):
            request.subject = "Changed"

    def test_empty_recipient_rejected(self):
        with pytest.raises(ValidationError):
            MessageRequest(recipient_address="", subject="Hi", body="Body")

    def test_equal_requests_compare_equal(self):
        first = MessageRequest(recipient_address="ada@example.com", subject="Hi", body="Body")
        second = MessageRequest(recipient_address="ada@example.com", subject="Hi", body="Body")

        assert first == second


class TestDeliveryOutcome:
    def test_success(self):
        request = MessageRequest(recipient_address="ada@example.com", subject="Hi", body="Body")

        outcome = DeliveryOutcome.success(request)

        assert outcome.is_success()
        assert outcome.status is DeliveryStatus.SUCCESS
        assert outcome.reason is None
        assert outcome.completed_at.tzinfo == timezone.utc

    def test_failure_keeps_reason_and_error(self):
        request = MessageRequest(recipient_address="ada@example.com", subject="Hi", body="Body")
        error = ConnectionError("connection reset")

        outcome = DeliveryOutcome.failure(request, error)

        assert not outcome.is_success()
        assert outcome.reason == "connection reset"
        assert outcome.error is error

    def test_failure_without_message_uses_type_name(self):
        request = MessageRequest(recipient_address="ada@example.com", subject="Hi", body="Body")

        assert DeliveryOutcome.failure(request, TimeoutError()).reason == "TimeoutError"
