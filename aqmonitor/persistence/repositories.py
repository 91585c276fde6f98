"""Data access layer for the user directory.

UserRepository works inside the caller's session and returns domain Users,
never ORM rows. It flushes but does not commit; get_session() commits.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from aqmonitor.domain.models import User
from aqmonitor.utils.timestamps import format_timestamp, utc_now

from .exceptions import DirectoryError, DuplicateUserError, UserNotFoundError
from .schema import UserModel

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user records and their notification preferences."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Retrieve a user by id.

        Returns:
            User if found, None otherwise

        Raises:
            DirectoryError: If a database error occurs
        """
        try:
            model = self.session.get(UserModel, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user {user_id}: {e}", exc_info=True)
            raise DirectoryError(f"Failed to retrieve user: {e}") from e

        return model.to_domain() if model is not None else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email address (case-insensitive).

        Returns:
            User if found, None otherwise

        Raises:
            DirectoryError: If a database error occurs
        """
        try:
            stmt = select(UserModel).where(func.lower(UserModel.email) == email.strip().lower())
            model = self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user by email: {e}", exc_info=True)
            raise DirectoryError(f"Failed to retrieve user: {e}") from e

        return model.to_domain() if model is not None else None

    def list_all(self) -> List[User]:
        """Return every user, oldest registration first."""
        try:
            stmt = select(UserModel).order_by(UserModel.created_at)
            models = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing users: {e}", exc_info=True)
            raise DirectoryError(f"Failed to list users: {e}") from e

        return [model.to_domain() for model in models]

    def add(self, user: User) -> User:
        """Insert a new user.

        created_at and updated_at are filled in when missing.

        Raises:
            DuplicateUserError: If the email address is already registered
            DirectoryError: If a database error occurs
        """
        if self.get_by_email(str(user.email)) is not None:
            raise DuplicateUserError(f"User with email {user.email} already exists")

        now = utc_now()
        stored = user.model_copy(
            update={
                "created_at": user.created_at or now,
                "updated_at": user.updated_at or now,
            }
        )

        try:
            model = UserModel.from_domain(stored)
            self.session.add(model)
            self.session.flush()
        except IntegrityError as e:
            logger.error(f"Integrity error adding user {user.id}: {e}", exc_info=True)
            raise DuplicateUserError(f"User with email {user.email} already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding user {user.id}: {e}", exc_info=True)
            raise DirectoryError(f"Failed to add user: {e}") from e

        return model.to_domain()

    def save(self, user: User) -> User:
        """Write every mutable field of an existing user.

        updated_at is set to the current time.

        Raises:
            UserNotFoundError: If the user does not exist
            DuplicateUserError: If the new email belongs to another user
            DirectoryError: If a database error occurs
        """
        try:
            model = self.session.get(UserModel, user.id)
            if model is None:
                raise UserNotFoundError(user.id)

            model.apply(user.model_copy(update={"updated_at": utc_now()}))
            self.session.flush()
        except UserNotFoundError:
            raise
        except IntegrityError as e:
            logger.error(f"Integrity error saving user {user.id}: {e}", exc_info=True)
            raise DuplicateUserError(f"Email {user.email} is already registered") from e
        except SQLAlchemyError as e:
            logger.error(f"Error saving user {user.id}: {e}", exc_info=True)
            raise DirectoryError(f"Failed to save user: {e}") from e

        return model.to_domain()

    def update_last_sent_at(self, user_id: str, sent_at: datetime) -> None:
        """Move the user's alert cooldown anchor.

        Raises:
            UserNotFoundError: If the user does not exist
            DirectoryError: If a database error occurs
        """
        try:
            stmt = (
                update(UserModel)
                .where(UserModel.id == user_id)
                .values(last_sent_at=format_timestamp(sent_at))
            )
            result = self.session.execute(stmt)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error updating last_sent_at for user {user_id}: {e}", exc_info=True)
            raise DirectoryError(f"Failed to update last_sent_at: {e}") from e

        if result.rowcount == 0:
            raise UserNotFoundError(user_id)
