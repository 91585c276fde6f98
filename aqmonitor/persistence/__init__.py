"""Persistence layer for the user directory.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None

    # Repository
    - UserRepository: users and their notification preferences

    # Exceptions
    - DirectoryError: Base exception for all directory errors
    - DatabaseConnectionError, UserNotFoundError, DataIntegrityError, DuplicateUserError

Example usage:
    >>> from aqmonitor.persistence import init_database, get_session, UserRepository
    >>>
    >>> init_database("sqlite:///./data/aqmonitor.db")
    >>>
    >>> with get_session() as session:
    ...     user = UserRepository(session).get_by_email("ada@example.com")
"""

from .database import close_database, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    DirectoryError,
    DuplicateUserError,
    UserNotFoundError,
)
from .repositories import UserRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    # Repositories
    "UserRepository",
    # Exceptions
    "DirectoryError",
    "DatabaseConnectionError",
    "UserNotFoundError",
    "DataIntegrityError",
    "DuplicateUserError",
]
