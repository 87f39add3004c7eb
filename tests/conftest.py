"""
tests/conftest.py -- Shared test fixtures for Yellow.

This module provides:
  - FakeClock: a settable time source so expiry tests never sleep
  - InMemoryStore: a dict-backed UserAccountStore for service-level tests
  - auth_config / clock / memory_store / components: unit-test wiring
  - sqlite_store: a real UserStore on an isolated in-memory SQLite database
  - api_client: TestClient over create_app() with the sqlite store

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient and run_in_threadpool run store calls on worker threads.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Each fixture uses a unique name so tests never share rows.

bcrypt runs at cost 4 (the minimum) everywhere in tests.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.builder import AuthComponents, build_auth_components
from auth.interfaces import EmailTakenError
from auth.models import Credential, NewCredential
from auth.store import UserStore
from core.config import AuthConfig, Settings

TEST_SECRET = "test-secret-key-for-testing-only-0123456789"
TEST_ROUNDS = 4


class FakeClock:
    """Callable time source. Starts at the real time; advance() moves it forward."""

    def __init__(self) -> None:
        self.now = float(int(time.time()))

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryStore:
    """Dict-backed UserAccountStore. Enforces email uniqueness like the real store."""

    def __init__(self) -> None:
        self.accounts: dict[str, Credential] = {}

    def find_by_email(self, email: str) -> Credential | None:
        return next((c for c in self.accounts.values() if c.email == email), None)

    def find_by_id(self, user_id: str) -> Credential | None:
        return self.accounts.get(user_id)

    def create(self, data: NewCredential) -> Credential:
        if any(c.email == data.email for c in self.accounts.values()):
            raise EmailTakenError(data.email)
        now = "2026-01-01T00:00:00+00:00"
        credential = Credential(
            id=str(uuid.uuid4()),
            name=data.name,
            email=data.email,
            password_hash=data.password_hash,
            created_at=now,
            updated_at=now,
        )
        self.accounts[credential.id] = credential
        return credential

    def delete(self, user_id: str) -> None:
        self.accounts.pop(user_id, None)


def _sqlite_url() -> str:
    return f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Unit-test wiring
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(secret_key=TEST_SECRET, token_expire_seconds=3600, bcrypt_rounds=TEST_ROUNDS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def components(auth_config: AuthConfig, memory_store: InMemoryStore, clock: FakeClock) -> AuthComponents:
    return build_auth_components(auth_config, memory_store, clock=clock)


@pytest.fixture
def sqlite_store() -> Generator[UserStore, None, None]:
    store = UserStore(_sqlite_url())
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Integration client
# ---------------------------------------------------------------------------


@pytest.fixture
def api_client(clock: FakeClock) -> Generator[tuple[TestClient, UserStore], None, None]:
    """Yield (client, store) for API integration tests.

    The TestClient runs the real app (real routes, real gate, real SQLAlchemy
    store) against an isolated in-memory database. The app's clock is the
    shared FakeClock fixture so tests can expire tokens on demand.
    """
    settings = Settings(
        _env_file=None,
        secret_key=TEST_SECRET,
        token_expire_seconds=3600,
        bcrypt_rounds=TEST_ROUNDS,
    )
    store = UserStore(_sqlite_url())
    app = create_app(settings=settings, store=store, clock=clock)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store
