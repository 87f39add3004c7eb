"""
auth/passwords.py -- Password hashing, comparison, and strength policy.

Security design decisions:
  bcrypt, used directly rather than through passlib. bcrypt is the right choice
  for low-entropy secrets because its cost factor makes brute-force expensive.
  The cost factor comes from AuthConfig.bcrypt_rounds (default 12).

  Errors are values: a failure of the bcrypt primitive (malformed stored hash,
  unexpected input) returns Failure(INTERNAL_FAILURE). compare() never turns
  a broken comparator into False -- callers must not confuse "wrong password"
  with "comparator broke".

  dummy_hash enables timing equalization in login so response time does not
  reveal whether an email is registered.

  These methods are synchronous and CPU-bound. Async callers must run them in
  the thread pool (see auth/service.py).
"""

from __future__ import annotations

import logging
import bcrypt

from auth.errors import ErrorKind, Failure
from auth.models import PasswordCheck
from core.config import AuthConfig

logger = logging.getLogger("yellow.auth")

MIN_PASSWORD_LENGTH = 8
# bcrypt only reads the first 72 bytes of its input; newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


class CredentialHasher:
    """Salted, adaptive one-way hashing for account passwords.

    Usage:
        hasher = CredentialHasher(settings.auth_config())
        hashed = hasher.hash("correct horse")
        hasher.compare("correct horse", hashed)  # True
    """

    def __init__(self, config: AuthConfig) -> None:
        self._rounds = config.bcrypt_rounds
        # Built up front so no login request pays for a hashpw call.
        # Comparing against it costs the same as comparing against a real hash.
        self.dummy_hash = bcrypt.hashpw(b"yellow_timing_dummy", bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def hash(self, password: str) -> str | Failure:
        """Return a bcrypt hash of the plaintext. A fresh salt is generated on every call."""
        try:
            salt = bcrypt.gensalt(rounds=self._rounds)
            return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
        except Exception:
            logger.exception("Password hashing failed")
            return Failure.of(ErrorKind.INTERNAL_FAILURE)

    def compare(self, password: str, hashed: str) -> bool | Failure:
        """Return True only if the plaintext matches the bcrypt hash."""
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            # Registration rejects such passwords, so no stored hash can match.
            return False
        try:
            return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
        except Exception:
            logger.exception("Password comparison failed")
            return Failure.of(ErrorKind.INTERNAL_FAILURE)

    def validate_strength(self, password: str) -> PasswordCheck:
        """Check a candidate password against the policy.

        Each rule appends its own message, so callers get every violation at once.
        """
        errors: list[str] = []
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            errors.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
        return PasswordCheck(valid=not errors, errors=errors)

    def compare_dummy(self, password: str) -> None:
        """Spend one bcrypt comparison without a real account behind it."""
        self.compare(password, self.dummy_hash)
