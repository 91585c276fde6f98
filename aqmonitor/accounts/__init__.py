"""Account events that produce user-facing notifications."""

from .service import UPDATABLE_PREFERENCES, AccountEvent, AccountService

__all__ = [
    "AccountService",
    "AccountEvent",
    "UPDATABLE_PREFERENCES",
]
