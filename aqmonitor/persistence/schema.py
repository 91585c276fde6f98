"""ORM model for the user directory.

Preferences are flattened into columns on the users table. Timestamps are
stored as ISO 8601 strings with a Z suffix (see aqmonitor.utils.timestamps).
"""

import logging

from sqlalchemy import Boolean, Column, Float, Index, Integer, String, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from aqmonitor.domain.models import NotificationPreferences, User
from aqmonitor.utils.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

Base = declarative_base()


class UserModel(Base):
    """ORM model for the users table."""

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, nullable=False)
    username = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    name = Column(String(255), nullable=True)

    # Notification preferences
    email_enabled = Column(Boolean, nullable=False, default=True)
    good_alert_enabled = Column(Boolean, nullable=False, default=True)
    bad_alert_enabled = Column(Boolean, nullable=False, default=True)
    good_threshold = Column(Float, nullable=False)
    bad_threshold = Column(Float, nullable=False)
    cooldown_ms = Column(Integer, nullable=False)
    last_sent_at = Column(String(50), nullable=True)

    # Account activity (ISO 8601 strings)
    last_login_at = Column(String(50), nullable=True)
    last_logout_at = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_users_email", "email"),)

    def to_domain(self) -> User:
        """Convert the row to a domain User."""
        return User(
            id=self.id,
            username=self.username,
            email=self.email,
            name=self.name,
            notification_preferences=NotificationPreferences(
                email_enabled=self.email_enabled,
                good_alert_enabled=self.good_alert_enabled,
                bad_alert_enabled=self.bad_alert_enabled,
                good_threshold=self.good_threshold,
                bad_threshold=self.bad_threshold,
                cooldown_ms=self.cooldown_ms,
                last_sent_at=parse_timestamp(self.last_sent_at),
            ),
            last_login_at=parse_timestamp(self.last_login_at),
            last_logout_at=parse_timestamp(self.last_logout_at),
            created_at=parse_timestamp(self.created_at),
            updated_at=parse_timestamp(self.updated_at),
        )

    @classmethod
    def from_domain(cls, user: User) -> "UserModel":
        """Create a row from a domain User.

        created_at and updated_at must be set by the caller.
        """
        model = cls(id=user.id, created_at=format_timestamp(user.created_at))
        model.apply(user)
        return model

    def apply(self, user: User) -> None:
        """Copy every mutable field of ``user`` onto this row."""
        prefs = user.notification_preferences
        self.username = user.username
        self.email = str(user.email)
        self.name = user.name
        self.email_enabled = prefs.email_enabled
        self.good_alert_enabled = prefs.good_alert_enabled
        self.bad_alert_enabled = prefs.bad_alert_enabled
        self.good_threshold = prefs.good_threshold
        self.bad_threshold = prefs.bad_threshold
        self.cooldown_ms = prefs.cooldown_ms
        self.last_sent_at = format_timestamp(prefs.last_sent_at)
        self.last_login_at = format_timestamp(user.last_login_at)
        self.last_logout_at = format_timestamp(user.last_logout_at)
        self.updated_at = format_timestamp(user.updated_at)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise

    tables = inspect(engine).get_table_names()
    logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
