"""
auth/resolver.py -- Turn an Authorization header into a Principal.

Three outcomes, kept apart because the two gate variants treat them differently:
  no token     -- header missing or not "Bearer <token>"
  token error  -- verify() failed (expired, invalid, or secret missing)
  resolved     -- token verified; principal is the account, or None if the
                  account no longer exists

An account that was deleted after its token was issued resolves to None. That
is the only way a still-unexpired token stops working.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from auth.errors import ErrorKind, Failure
from auth.interfaces import UserAccountStore
from auth.models import Principal
from auth.tokens import TokenService, extract_bearer_token

logger = logging.getLogger("yellow.auth")


@dataclass(frozen=True)
class Resolution:
    token_present: bool
    failure: Failure | None = None
    principal: Principal | None = None


NO_TOKEN = Resolution(token_present=False)


class AuthResolver:
    def __init__(self, tokens: TokenService, store: UserAccountStore) -> None:
        self._tokens = tokens
        self._store = store

    async def resolve(self, authorization: str | None) -> Resolution:
        """Resolve the raw Authorization header value of a request."""
        token = extract_bearer_token(authorization)
        if token is None:
            return NO_TOKEN

        payload = self._tokens.verify(token)
        if isinstance(payload, Failure):
            return Resolution(token_present=True, failure=payload)

        try:
            credential = await run_in_threadpool(self._store.find_by_id, payload.user_id)
        except Exception:
            logger.exception("Account lookup failed for token subject")
            return Resolution(token_present=True, failure=Failure.of(ErrorKind.INTERNAL_FAILURE))

        if credential is None:
            return Resolution(token_present=True)
        return Resolution(token_present=True, principal=Principal.from_credential(credential))
