"""
api/routes/v1/auth.py -- Account registration, login, and session endpoints.

Routes:
  POST /api/v1/auth/register   -- create an account; 201 with the public profile
  POST /api/v1/auth/login      -- exchange email + password for a bearer token
  POST /api/v1/auth/logout     -- stateless; the client discards its token
  GET  /api/v1/auth/me         -- current account (requires auth)

Security:
  Login answers 401 with one fixed message for unknown email and wrong
  password alike. UserAccountService already returns the same Failure for
  both; the route must not add anything that tells them apart.
  Cache-Control: no-store on login responses so tokens are never cached.

Error translation happens here and only here: the service returns Failure
values, this module picks the status code. Each handler also catches anything
unexpected so a well-formed JSON body always comes back.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PrincipalResponse,
    RegisterRequest,
)
from auth.builder import AuthComponents
from auth.errors import ErrorKind, Failure
from auth.models import Principal

logger = logging.getLogger("yellow.api")

# kind -> (status, error label); 400 bodies share the validation label.
_REGISTER_ERRORS = {
    ErrorKind.INVALID_PASSWORD: (400, "Validation failed"),
    ErrorKind.EMAIL_ALREADY_EXISTS: (409, "Registration failed"),
}


def _error(status_code: int, error: str, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message).model_dump(),
        headers=headers,
    )


def create_auth_router(components: AuthComponents) -> APIRouter:
    """Build the auth router around already-wired components.

    Auth policy:
    - POST /auth/register: public
    - POST /auth/login:    public
    - POST /auth/logout:   public -- nothing to invalidate server-side
    - GET  /auth/me:       requires auth (components.require_auth)
    """
    router = APIRouter()
    accounts = components.accounts

    @router.post("/auth/register", response_model=PrincipalResponse, status_code=201)
    async def register(body: RegisterRequest) -> JSONResponse:
        """Create an account. The response never includes the password hash."""
        try:
            result = await accounts.register(body.name, body.email, body.password)
        except Exception:
            logger.exception("Registration failed unexpectedly")
            return _error(500, "Internal server error", "Failed to register user")

        if isinstance(result, Failure):
            mapped = _REGISTER_ERRORS.get(result.kind)
            if mapped is None:
                return _error(500, "Internal server error", "Failed to register user")
            status_code, label = mapped
            return _error(status_code, label, result.message)

        return JSONResponse(status_code=201, content=PrincipalResponse.from_principal(result).model_dump())

    @router.post("/auth/login", response_model=LoginResponse)
    async def login(body: LoginRequest) -> JSONResponse:
        """Authenticate with email and password; return the profile and a bearer token."""
        no_store = {"Cache-Control": "no-store"}
        try:
            result = await accounts.login(body.email, body.password)
        except Exception:
            logger.exception("Login failed unexpectedly")
            return _error(500, "Internal server error", "Failed to authenticate user", no_store)

        if isinstance(result, Failure):
            if result.kind is ErrorKind.INVALID_CREDENTIALS:
                return _error(401, "Authentication failed", result.message, no_store)
            return _error(500, "Internal server error", "Failed to authenticate user", no_store)

        content = LoginResponse(user=PrincipalResponse.from_principal(result.principal), token=result.token)
        return JSONResponse(status_code=200, content=content.model_dump(), headers=no_store)

    @router.post("/auth/logout", response_model=MessageResponse)
    async def logout() -> MessageResponse:
        """Tokens are stateless; logging out is the client dropping its token."""
        return MessageResponse(message="Logout successful")

    @router.get("/auth/me", response_model=PrincipalResponse)
    async def me(principal: Principal = Depends(components.require_auth)) -> PrincipalResponse:
        """Return the public profile of the authenticated account."""
        return PrincipalResponse.from_principal(principal)

    return router
