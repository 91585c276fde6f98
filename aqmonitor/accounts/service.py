"""Account events: directory updates followed by user-facing notifications.

Each operation runs its directory work inside one session. Lifecycle messages
are queued only after that work has been flushed without error; a rejected
submission (closed or full queue) propagates to the caller. The directory
change has already been committed by then.
"""

from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, ContextManager, Dict, Optional

from sqlalchemy.orm import Session

from aqmonitor.config.models import PreferenceDefaults
from aqmonitor.domain.models import DeliveryOutcome, NotificationPreferences, User
from aqmonitor.logging import get_logger
from aqmonitor.logging.context import log_context
from aqmonitor.notifications.models import AlertDispatch
from aqmonitor.notifications.service import NotificationService
from aqmonitor.persistence.database import get_session
from aqmonitor.persistence.exceptions import DuplicateUserError, UserNotFoundError
from aqmonitor.persistence.repositories import UserRepository
from aqmonitor.utils.timestamps import utc_now

logger = get_logger(__name__, component="account")

# last_sent_at is owned by the alert path
UPDATABLE_PREFERENCES = frozenset(NotificationPreferences.model_fields) - {"last_sent_at"}


@dataclass
class AccountEvent:
    """Result of an account operation.

    Attributes:
        event: Event name (registered, login, logout, profile_updated)
        user: The user after the change (None for logout of an unknown user)
        handle: Pending delivery outcome of the notice (None if nothing was queued)
    """

    event: str
    user: Optional[User] = None
    handle: Optional["Future[DeliveryOutcome]"] = None


class AccountService:
    """Registration, login/logout, profile changes and readings for users."""

    def __init__(
        self,
        notification_service: NotificationService,
        preference_defaults: Optional[PreferenceDefaults] = None,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize account service.

        Args:
            notification_service: Where lifecycle messages and alerts go
            preference_defaults: Preferences given to new users
            session_factory: Transactional session provider
            clock: Source of the current UTC time
        """
        self.notifications = notification_service
        self.preference_defaults = preference_defaults or PreferenceDefaults()
        self.session_factory = session_factory
        self.clock = clock

    def register_user(self, username: str, email: str, name: Optional[str] = None) -> AccountEvent:
        """Create a user with default preferences and send the welcome message.

        Raises:
            DuplicateUserError: If the email address is already registered
            pydantic.ValidationError: If username or email is invalid
        """
        now = self.clock()
        user = User(
            username=username,
            email=email,
            name=name,
            notification_preferences=self.preference_defaults.build(),
            created_at=now,
            updated_at=now,
        )

        with self.session_factory() as session:
            repo = UserRepository(session)
            if repo.get_by_email(email) is not None:
                raise DuplicateUserError(f"User with email {email} already exists")
            user = repo.add(user)

        with log_context(user_id=user.id):
            logger.info("User registered", extra={"event": "account.registered"})
            handle = self.notifications.notify_welcome(user)

        return AccountEvent(event="registered", user=user, handle=handle)

    def record_login(self, email: str) -> AccountEvent:
        """Stamp last_login_at and send the new-login notice.

        Raises:
            UserNotFoundError: If no user has this email
        """
        now = self.clock()

        with self.session_factory() as session:
            repo = UserRepository(session)
            user = repo.get_by_email(email)
            if user is None:
                raise UserNotFoundError(email)
            user.last_login_at = now
            user = repo.save(user)

        with log_context(user_id=user.id):
            logger.info("Login recorded", extra={"event": "account.login"})
            handle = self.notifications.notify_login(user, now)

        return AccountEvent(event="login", user=user, handle=handle)

    def record_logout(self, user_id: str) -> AccountEvent:
        """Stamp last_logout_at and send the logout notice.

        An unknown user is not an error: nothing is stored or sent.
        """
        now = self.clock()

        with self.session_factory() as session:
            repo = UserRepository(session)
            user = repo.get_by_id(user_id)
            if user is not None:
                user.last_logout_at = now
                user = repo.save(user)

        if user is None:
            logger.info(
                "Logout for unknown user ignored",
                extra={"event": "account.logout.unknown_user", "user_id": user_id},
            )
            return AccountEvent(event="logout")

        with log_context(user_id=user.id):
            logger.info("Logout recorded", extra={"event": "account.logout"})
            handle = self.notifications.notify_logout(user, now)

        return AccountEvent(event="logout", user=user, handle=handle)

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        username: Optional[str] = None,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> AccountEvent:
        """Apply profile changes and send the profile-updated notice.

        Preference changes are merged over the stored values; keys left out
        keep their current value.

        Raises:
            UserNotFoundError: If the user does not exist
            ValueError: If a preference key is unknown or a value is invalid
        """
        if preferences:
            unknown = set(preferences) - UPDATABLE_PREFERENCES
            if unknown:
                raise ValueError(f"Unknown notification preferences: {', '.join(sorted(unknown))}")

        now = self.clock()

        with self.session_factory() as session:
            repo = UserRepository(session)
            user = self._require_user(repo, user_id)

            if name:
                user.name = name
            if username:
                user.username = username
            if preferences:
                merged = {**user.notification_preferences.model_dump(), **preferences}
                user.notification_preferences = NotificationPreferences.model_validate(merged)

            user = repo.save(user)

        with log_context(user_id=user.id):
            logger.info(
                "Profile updated",
                extra={
                    "event": "account.profile_updated",
                    "preferences_changed": sorted(preferences or {}),
                },
            )
            handle = self.notifications.notify_profile_updated(user, now)

        return AccountEvent(event="profile_updated", user=user, handle=handle)

    def record_reading(self, user_id: str, reading: float) -> AlertDispatch:
        """Run a sensor reading through the alert path for one user.

        The cooldown anchor is written in the same session that loaded the
        user, after the queue has accepted the alert.

        Raises:
            UserNotFoundError: If the user does not exist
            ValueError: If the reading is not a finite number
            QueueClosedError, QueueFullError: If the queue rejects the alert
        """
        with self.session_factory() as session:
            repo = UserRepository(session)
            user = self._require_user(repo, user_id)
            return self.notifications.dispatch_alert(
                user, reading, now=self.clock(), user_repo=repo
            )

    def send_custom_message(self, user_id: str, subject: str, body: str) -> "Future[DeliveryOutcome]":
        """Queue a caller-written message for a user.

        Raises:
            UserNotFoundError: If the user does not exist
            NotificationsDisabledError: If the user turned email off
        """
        user = self.get_profile(user_id)
        return self.notifications.send_custom_message(user, subject, body)

    def find_by_email(self, email: str) -> Optional[User]:
        """Look up a user by email address; None if not registered."""
        with self.session_factory() as session:
            return UserRepository(session).get_by_email(email)

    def get_profile(self, user_id: str) -> User:
        """Load a user.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        with self.session_factory() as session:
            return self._require_user(UserRepository(session), user_id)

    @staticmethod
    def _require_user(repo: UserRepository, user_id: str) -> User:
        user = repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user
