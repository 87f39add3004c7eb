"""
auth/tokens.py -- Session token issuance, verification, and header parsing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with AuthConfig.secret_key and
       carry user_id, email, iat and exp. Nothing secret goes into the claims.

  Outcomes are values, not exceptions. verify() returns a TokenPayload or a
       Failure whose kind is one of:
         TOKEN_EXPIRED    -- signature fine, now >= exp
         TOKEN_INVALID    -- bad signature, malformed token, missing claims
         INTERNAL_FAILURE -- SECRET_KEY not configured
       The three stay distinguishable so the gate can answer 401 for the first
       two and 500 for the third.

  Expiry is checked here against self._clock rather than by jose. A token whose
       lifetime is 0 is expired the moment it is issued, and tests can move the
       clock without sleeping.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from jose import jwt
from jose.exceptions import JOSEError

from auth.errors import ErrorKind, Failure
from auth.models import TokenPayload
from core.config import AuthConfig

logger = logging.getLogger("yellow.auth")

_ALGORITHM = "HS256"
_BEARER_SCHEME = "Bearer"


class TokenService:
    """Issues and verifies signed, time-limited session tokens.

    Usage:
        tokens = TokenService(settings.auth_config())
        token = tokens.issue(user.id, user.email)
        payload = tokens.verify(token)
    """

    def __init__(self, config: AuthConfig, clock: Callable[[], float] = time.time) -> None:
        self._secret = config.secret_key
        self._lifetime = config.token_expire_seconds
        self._clock = clock

    def issue(self, user_id: str, email: str) -> str | Failure:
        """Encode a signed JWT for the given identity, valid for the configured lifetime."""
        if not self._secret:
            logger.error("Cannot issue token: SECRET_KEY is not configured")
            return Failure.of(ErrorKind.INTERNAL_FAILURE)
        issued_at = int(self._clock())
        claims = {
            "user_id": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        try:
            return jwt.encode(claims, self._secret, algorithm=_ALGORITHM)
        except JOSEError:
            logger.exception("Token signing failed")
            return Failure.of(ErrorKind.INTERNAL_FAILURE)

    def verify(self, token: str) -> TokenPayload | Failure:
        """Check signature, structure and expiry. Returns the payload or a Failure."""
        if not self._secret:
            logger.error("Cannot verify token: SECRET_KEY is not configured")
            return Failure.of(ErrorKind.INTERNAL_FAILURE)
        try:
            claims = jwt.decode(token, self._secret, algorithms=[_ALGORITHM], options={"verify_exp": False})
        except JOSEError:
            return Failure.of(ErrorKind.TOKEN_INVALID)

        user_id = claims.get("user_id")
        email = claims.get("email")
        issued_at = claims.get("iat")
        expires_at = claims.get("exp")
        if not isinstance(user_id, str) or not isinstance(email, str):
            return Failure.of(ErrorKind.TOKEN_INVALID)
        if not _is_timestamp(issued_at) or not _is_timestamp(expires_at):
            return Failure.of(ErrorKind.TOKEN_INVALID)

        if self._clock() >= expires_at:
            return Failure.of(ErrorKind.TOKEN_EXPIRED)
        return TokenPayload(user_id=user_id, email=email, issued_at=issued_at, expires_at=expires_at)


def extract_bearer_token(value: str | None) -> str | None:
    """Return the token from an "Authorization: Bearer <token>" value, else None.

    Only the exact two-part form is accepted. A missing header, another scheme,
    extra segments or a bare "Bearer" all mean "no token" -- not an error.
    """
    if not value:
        return None
    parts = value.split(" ")
    if len(parts) != 2 or parts[0] != _BEARER_SCHEME or not parts[1]:
        return None
    return parts[1]


def _is_timestamp(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
