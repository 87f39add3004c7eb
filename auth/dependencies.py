"""
auth/dependencies.py -- FastAPI Depends() gates for authentication.

Two variants built from one decision function:

  AuthGate(resolver, required=True)   -- the route needs a principal.
  AuthGate(resolver, required=False)  -- the route works with or without one.

Decision table (resolution -> outcome):

                                   required          optional
  no token                         401 missing       proceed, anonymous
  token expired / invalid          401 <message>     proceed, anonymous
  token ok, account gone           401 not found     401 not found
  token ok, account found          proceed           proceed
  internal failure / exception     500               500

The optional gate ignores an expired or invalid token but rejects a valid
token whose account is gone. Keep the two branches separate.

On success the Principal is stored on request.state.principal and also
returned, so routes can take it either as a dependency value or from the
request. Anonymous requests leave request.state untouched.

Layer rule: this module may import from fastapi because it is part of the
FastAPI dependency injection system.
"""

import logging
from dataclasses import dataclass

from fastapi import HTTPException, Request

from auth.errors import DEFAULT_MESSAGES, ErrorKind
from auth.models import Principal
from auth.resolver import AuthResolver, Resolution

logger = logging.getLogger("yellow.auth")

_UNAUTHORIZED = "Unauthorized"
_INTERNAL_ERROR = "Internal Server Error"


@dataclass(frozen=True)
class GateDecision:
    proceed: bool
    principal: Principal | None = None
    status_code: int = 200
    body: dict | None = None


def _reject(status_code: int, error: str, message: str) -> GateDecision:
    return GateDecision(proceed=False, status_code=status_code, body={"error": error, "message": message})


ANONYMOUS = GateDecision(proceed=True)
INTERNAL_FAILURE = _reject(500, _INTERNAL_ERROR, DEFAULT_MESSAGES[ErrorKind.INTERNAL_FAILURE])


def decide(resolution: Resolution, required: bool) -> GateDecision:
    """Map a resolver outcome to proceed / reject for one gate variant."""
    if not resolution.token_present:
        if required:
            return _reject(401, _UNAUTHORIZED, DEFAULT_MESSAGES[ErrorKind.TOKEN_MISSING])
        return ANONYMOUS

    failure = resolution.failure
    if failure is not None:
        if failure.kind is ErrorKind.INTERNAL_FAILURE:
            return INTERNAL_FAILURE
        if required:
            return _reject(401, _UNAUTHORIZED, failure.message)
        return ANONYMOUS

    if resolution.principal is None:
        return _reject(401, _UNAUTHORIZED, DEFAULT_MESSAGES[ErrorKind.USER_NOT_FOUND])
    return GateDecision(proceed=True, principal=resolution.principal)


class AuthGate:
    """Callable dependency that gates a route on the Authorization header.

    Use as a FastAPI dependency:
        require_auth = AuthGate(resolver, required=True)

        @router.get("/protected")
        async def route(principal: Principal = Depends(require_auth)): ...
    """

    def __init__(self, resolver: AuthResolver, required: bool) -> None:
        self._resolver = resolver
        self.required = required

    async def __call__(self, request: Request) -> Principal | None:
        try:
            resolution = await self._resolver.resolve(request.headers.get("Authorization"))
            decision = decide(resolution, self.required)
        except Exception:
            logger.exception("Authentication gate failed on %s %s", request.method, request.url.path)
            decision = INTERNAL_FAILURE

        if not decision.proceed:
            headers = {"WWW-Authenticate": "Bearer"} if decision.status_code == 401 else None
            raise HTTPException(status_code=decision.status_code, detail=decision.body, headers=headers)

        if decision.principal is not None:
            request.state.principal = decision.principal
        return decision.principal


def current_principal(request: Request) -> Principal | None:
    """Return the Principal a gate attached to this request, or None."""
    return getattr(request.state, "principal", None)
