"""User directory exceptions.

Everything raised by the persistence layer derives from DirectoryError.
Errors are surfaced to the caller and never retried here.
"""


class DirectoryError(Exception):
    """Base exception for user directory errors."""

    pass


class DatabaseConnectionError(DirectoryError):
    """Raised when the database cannot be initialized or reached.

    Examples:
    - Invalid database URL
    - Database file not accessible
    - Session requested before init_database()
    """

    pass


class UserNotFoundError(DirectoryError):
    """Raised when an operation requires a user that does not exist.

    Lookups that may legitimately miss return None instead.
    """

    def __init__(self, user_ref: str):
        self.user_ref = user_ref
        super().__init__(f"User not found: {user_ref}")


class DataIntegrityError(DirectoryError):
    """Raised when a write violates a database constraint."""

    pass


class DuplicateUserError(DataIntegrityError):
    """Raised when registering an email address that is already taken."""

    pass
