"""
auth/errors.py -- Tagged failure values for the auth core.

The hasher, token service, resolver and account service return a Failure
instead of raising. Callers branch on Failure.kind; only the HTTP boundary
(routes and the auth gate) turns a kind into a status code.

Messages are fixed per kind so nothing about the underlying cause (which
check failed, what the storage layer said) reaches a client.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_PASSWORD = "InvalidPassword"
    EMAIL_ALREADY_EXISTS = "EmailAlreadyExists"
    INVALID_CREDENTIALS = "InvalidCredentials"
    TOKEN_EXPIRED = "TokenExpired"
    TOKEN_INVALID = "TokenInvalid"
    TOKEN_MISSING = "TokenMissing"
    USER_NOT_FOUND = "UserNotFound"
    INTERNAL_FAILURE = "InternalFailure"


DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_PASSWORD: "Password does not meet requirements",
    ErrorKind.EMAIL_ALREADY_EXISTS: "User with this email already exists",
    ErrorKind.INVALID_CREDENTIALS: "Invalid email or password",
    ErrorKind.TOKEN_EXPIRED: "Token has expired",
    ErrorKind.TOKEN_INVALID: "Invalid token",
    ErrorKind.TOKEN_MISSING: "No authentication token provided",
    ErrorKind.USER_NOT_FOUND: "User not found",
    ErrorKind.INTERNAL_FAILURE: "Authentication failed",
}


@dataclass(frozen=True)
class Failure:
    """A typed, client-safe failure outcome."""

    kind: ErrorKind
    message: str

    @classmethod
    def of(cls, kind: ErrorKind, message: str | None = None) -> Failure:
        """Build a Failure with the fixed message for its kind unless one is given."""
        return cls(kind=kind, message=message if message is not None else DEFAULT_MESSAGES[kind])
