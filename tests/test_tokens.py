"""Unit tests for auth/tokens.py -- TokenService and bearer header parsing.

Covers:
- issue -> verify round trip returns the embedded identity
- tampering yields TOKEN_INVALID; expiry yields TOKEN_EXPIRED; the two differ
- a missing SECRET_KEY yields INTERNAL_FAILURE for both issue and verify
- claims never carry anything beyond user_id, email, iat, exp
- extract_bearer_token accepts only "Bearer <token>"
"""

import pytest
from jose import jwt

from auth.errors import ErrorKind, Failure
from auth.models import TokenPayload
from auth.tokens import TokenService, extract_bearer_token
from core.config import AuthConfig


@pytest.fixture
def tokens(auth_config, clock) -> TokenService:
    return TokenService(auth_config, clock=clock)


def _flip_signature_char(token: str) -> str:
    """Change one character in the middle of the signature segment.

    The last base64url character of an HS256 signature carries padding bits,
    so flipping it may decode to the same bytes. A middle character never does.
    """
    header, payload, signature = token.split(".")
    i = len(signature) // 2
    replacement = "A" if signature[i] != "A" else "B"
    return ".".join([header, payload, signature[:i] + replacement + signature[i + 1 :]])


class TestIssueAndVerify:
    def test_round_trip(self, tokens, clock):
        token = tokens.issue("user-123", "alice@example.com")
        assert isinstance(token, str)

        payload = tokens.verify(token)
        assert isinstance(payload, TokenPayload)
        assert payload.user_id == "user-123"
        assert payload.email == "alice@example.com"
        assert payload.issued_at == int(clock.now)
        assert payload.expires_at == int(clock.now) + 3600

    def test_claims_carry_no_secrets(self, tokens):
        token = tokens.issue("user-123", "alice@example.com")
        claims = jwt.get_unverified_claims(token)
        assert set(claims) == {"user_id", "email", "iat", "exp"}

    def test_flipped_character_is_invalid(self, tokens):
        token = tokens.issue("user-123", "alice@example.com")
        result = tokens.verify(_flip_signature_char(token))
        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.TOKEN_INVALID
        assert result.message == "Invalid token"

    @pytest.mark.parametrize("garbage", ["", "abc123", "a.b.c", "not.a.jwt.at.all"])
    def test_garbage_is_invalid(self, tokens, garbage):
        result = tokens.verify(garbage)
        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.TOKEN_INVALID

    def test_other_secret_is_invalid(self, tokens, clock):
        other = TokenService(AuthConfig(secret_key="another-secret-that-is-long-enough-0000"), clock=clock)
        result = tokens.verify(other.issue("user-123", "alice@example.com"))
        assert result.kind is ErrorKind.TOKEN_INVALID

    def test_missing_claims_are_invalid(self, tokens, clock, auth_config):
        claims = {"email": "a@example.com", "iat": int(clock.now), "exp": int(clock.now) + 60}
        token = jwt.encode(claims, auth_config.secret_key, algorithm="HS256")
        result = tokens.verify(token)
        assert result.kind is ErrorKind.TOKEN_INVALID

    def test_zero_lifetime_is_expired(self, clock):
        config = AuthConfig(secret_key="zero-lifetime-secret-long-enough-000000", token_expire_seconds=0)
        service = TokenService(config, clock=clock)
        result = service.verify(service.issue("user-123", "alice@example.com"))
        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.TOKEN_EXPIRED
        assert result.message == "Token has expired"

    def test_expired_after_lifetime(self, tokens, clock):
        token = tokens.issue("user-123", "alice@example.com")
        clock.advance(3599)
        assert isinstance(tokens.verify(token), TokenPayload)
        clock.advance(1)
        assert tokens.verify(token).kind is ErrorKind.TOKEN_EXPIRED

    def test_expired_and_invalid_are_distinguishable(self, tokens, clock):
        token = tokens.issue("user-123", "alice@example.com")
        clock.advance(7200)
        expired = tokens.verify(token)
        invalid = tokens.verify(_flip_signature_char(token))
        assert expired.kind is not invalid.kind
        assert expired.message != invalid.message


class TestMissingSecret:
    @pytest.fixture
    def unconfigured(self, clock) -> TokenService:
        return TokenService(AuthConfig(secret_key=""), clock=clock)

    def test_issue_is_internal_failure(self, unconfigured):
        result = unconfigured.issue("user-123", "alice@example.com")
        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.INTERNAL_FAILURE

    def test_verify_is_internal_failure(self, unconfigured, tokens):
        token = tokens.issue("user-123", "alice@example.com")
        result = unconfigured.verify(token)
        assert result.kind is ErrorKind.INTERNAL_FAILURE


class TestExtractBearerToken:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("Bearer abc123", "abc123"),
            ("Basic xyz", None),
            (None, None),
            ("", None),
            ("Bearer", None),
            ("Bearer ", None),
            ("Bearer a b", None),
            ("bearer abc123", None),
            ("Bearer  abc123", None),
        ],
    )
    def test_extract(self, header, expected):
        assert extract_bearer_token(header) == expected
