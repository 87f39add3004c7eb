"""
auth/service.py -- Registration and login orchestration.

Both operations return a Failure instead of raising. Routes map Failure.kind to
an HTTP status; nothing here knows about HTTP.

Security design decisions:
  Account enumeration [login]: an unknown email and a wrong password return the
  same Failure object (same kind, same message). The unknown-email branch still
  runs a bcrypt comparison against CredentialHasher.dummy_hash so both branches
  cost one bcrypt check and response time does not tell them apart.

  Duplicate registration [register]: the find_by_email() check and the create()
  insert are not atomic. Two concurrent registrations for one email can both
  pass the check; the store's UNIQUE constraint rejects the second insert and
  EmailTakenError is re-mapped to EMAIL_ALREADY_EXISTS here.

  No retries. A store failure is logged once and surfaces as INTERNAL_FAILURE.
  Retrying a registration against a stale view of uniqueness could create
  duplicate accounts.

Concurrency:
  bcrypt and the store are blocking. Every call into them goes through
  run_in_threadpool so a slow hash never stalls the event loop.
"""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from auth.errors import ErrorKind, Failure
from auth.interfaces import EmailTakenError, UserAccountStore
from auth.models import Credential, LoginResult, NewCredential, Principal
from auth.passwords import CredentialHasher
from auth.tokens import TokenService

logger = logging.getLogger("yellow.auth")

_INVALID_CREDENTIALS = Failure.of(ErrorKind.INVALID_CREDENTIALS)
_EMAIL_EXISTS = Failure.of(ErrorKind.EMAIL_ALREADY_EXISTS)
_INTERNAL = Failure.of(ErrorKind.INTERNAL_FAILURE)


class UserAccountService:
    """Registers accounts and exchanges credentials for session tokens."""

    def __init__(self, hasher: CredentialHasher, tokens: TokenService, store: UserAccountStore) -> None:
        self._hasher = hasher
        self._tokens = tokens
        self._store = store

    async def register(self, name: str, email: str, password: str) -> Principal | Failure:
        """Create an account and return its public view.

        Order: password policy -> existing email -> hash -> insert.
        """
        check = self._hasher.validate_strength(password)
        if not check.valid:
            return Failure.of(ErrorKind.INVALID_PASSWORD, ", ".join(check.errors))

        try:
            existing = await run_in_threadpool(self._store.find_by_email, email)
        except Exception:
            logger.exception("Account lookup failed during registration")
            return _INTERNAL
        if existing is not None:
            return _EMAIL_EXISTS

        password_hash = await run_in_threadpool(self._hasher.hash, password)
        if isinstance(password_hash, Failure):
            return password_hash

        data = NewCredential(name=name, email=email, password_hash=password_hash)
        try:
            credential = await run_in_threadpool(self._store.create, data)
        except EmailTakenError:
            logger.info("Concurrent registration for the same email rejected by the store")
            return _EMAIL_EXISTS
        except Exception:
            logger.exception("Account creation failed")
            return _INTERNAL

        logger.info("Registered account %s", credential.id)
        return Principal.from_credential(credential)

    async def login(self, email: str, password: str) -> LoginResult | Failure:
        """Verify credentials and issue a session token."""
        try:
            credential: Credential | None = await run_in_threadpool(self._store.find_by_email, email)
        except Exception:
            logger.exception("Account lookup failed during login")
            return _INTERNAL

        if credential is None:
            # Equalize timing -- do NOT return before running bcrypt.
            await run_in_threadpool(self._hasher.compare_dummy, password)
            return _INVALID_CREDENTIALS

        matched = await run_in_threadpool(self._hasher.compare, password, credential.password_hash)
        if isinstance(matched, Failure):
            return matched
        if not matched:
            return _INVALID_CREDENTIALS

        token = self._tokens.issue(credential.id, credential.email)
        if isinstance(token, Failure):
            return token
        return LoginResult(principal=Principal.from_credential(credential), token=token)
