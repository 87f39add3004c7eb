"""
API request and response models for Yellow REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.models import Principal

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Only name is whitespace-stripped. Passwords are taken byte-for-byte.
    """

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: EmailStr
    password: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PrincipalResponse(BaseModel):
    """Public account view. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalResponse":
        return cls(
            id=principal.id,
            name=principal.name,
            email=principal.email,
            created_at=principal.created_at,
            updated_at=principal.updated_at,
        )


class LoginResponse(BaseModel):
    """Response for POST /api/v1/auth/login."""

    model_config = ConfigDict(frozen=True)

    user: PrincipalResponse
    token: str


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    status: Literal["ok", "error"]
    service: str = "yellow-api"
    database: Literal["connected", "disconnected"]
    timestamp: str


# ---------------------------------------------------------------------------
# Error envelopes
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error body: a short category plus a client-safe message."""

    error: str
    message: str


class FieldError(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(ErrorResponse):
    """400 body for request validation failures, one entry per offending field."""

    details: list[FieldError] = Field(default_factory=list)
