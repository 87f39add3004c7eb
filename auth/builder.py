"""
auth/builder.py -- Startup wiring for the auth core.

build_auth_components() is the one place the concrete store and the frozen
AuthConfig are plugged into the hasher, token service, resolver, account
service and gates. Everything downstream receives its collaborators through
constructors, so a missing dependency is a TypeError at startup rather than a
lookup failure in the middle of a request.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from auth.dependencies import AuthGate
from auth.interfaces import UserAccountStore
from auth.passwords import CredentialHasher
from auth.resolver import AuthResolver
from auth.service import UserAccountService
from auth.tokens import TokenService
from core.config import AuthConfig


@dataclass(frozen=True)
class AuthComponents:
    config: AuthConfig
    store: UserAccountStore
    hasher: CredentialHasher
    tokens: TokenService
    resolver: AuthResolver
    accounts: UserAccountService
    require_auth: AuthGate
    optional_auth: AuthGate


def build_auth_components(
    config: AuthConfig,
    store: UserAccountStore,
    clock: Callable[[], float] = time.time,
) -> AuthComponents:
    """Wire the auth core around a store. clock is only overridden in tests."""
    hasher = CredentialHasher(config)
    tokens = TokenService(config, clock=clock)
    resolver = AuthResolver(tokens, store)
    return AuthComponents(
        config=config,
        store=store,
        hasher=hasher,
        tokens=tokens,
        resolver=resolver,
        accounts=UserAccountService(hasher, tokens, store),
        require_auth=AuthGate(resolver, required=True),
        optional_auth=AuthGate(resolver, required=False),
    )
