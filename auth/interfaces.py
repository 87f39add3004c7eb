"""
auth/interfaces.py -- The account-store contract the auth core consumes.

The core depends on UserAccountStore, not on auth/store.py. Any object with
these three methods satisfies it, which lets tests run the services against
an in-memory fake and keeps the core free of SQL.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from auth.models import Credential, NewCredential


class EmailTakenError(Exception):
    """Raised by UserAccountStore.create() when the email is already registered.

    Stores translate their own uniqueness violation (e.g. IntegrityError) into
    this exception so the account service can report EMAIL_ALREADY_EXISTS
    without knowing which storage engine is underneath.
    """


@runtime_checkable
class UserAccountStore(Protocol):
    """Interface for user-account persistence.

    Implementations may block; the auth core always calls them from the
    thread pool and never retries a failed call.
    """

    def find_by_email(self, email: str) -> Credential | None:
        """Return the account with this exact email, or None."""
        ...

    def find_by_id(self, user_id: str) -> Credential | None:
        """Return the account with this id, or None."""
        ...

    def create(self, data: NewCredential) -> Credential:
        """Persist a new account and return it.

        Raises:
            EmailTakenError: If another account already uses data.email.
        """
        ...
