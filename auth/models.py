"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Dataclasses own the
domain shape; the store, services and routes do the work.

Invariant: only Credential carries password_hash. Principal and TokenPayload
are built without it, so anything handed to a client or embedded in a token
is secret-free by construction.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Credential:
    """The full persisted account record, including the bcrypt hash.

    Owned by the account store. Email uniqueness is enforced by the storage
    layer (UNIQUE constraint), not by this class.
    """

    id: str
    name: str
    email: str
    password_hash: str
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class NewCredential:
    """Data handed to UserAccountStore.create() at registration."""

    name: str
    email: str
    password_hash: str


@dataclass(frozen=True)
class Principal:
    """Public, secret-free view of an account attached to a request."""

    id: str
    name: str
    email: str
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_credential(cls, credential: Credential) -> Principal:
        return cls(
            id=credential.id,
            name=credential.name,
            email=credential.email,
            created_at=credential.created_at,
            updated_at=credential.updated_at,
        )


@dataclass(frozen=True)
class TokenPayload:
    """Claims embedded in a signed session token. Times are epoch seconds."""

    user_id: str
    email: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class LoginResult:
    principal: Principal
    token: str


@dataclass
class PasswordCheck:
    """Outcome of a password policy check. errors is empty when valid."""

    valid: bool
    errors: list[str] = field(default_factory=list)
