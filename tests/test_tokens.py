from datetime import UTC, datetime, timedelta

import pytest

from siren_api.errors import AuthenticationError
from siren_api.security.tokens import TokenSigner, TokenVerifier, parse_bearer

SECRET = "test-secret"
NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="module")
def signer():
    return TokenSigner(SECRET, ttl_seconds=60, clock=lambda: NOW)


@pytest.fixture(scope="module")
def verifier():
    return TokenVerifier(SECRET, clock=lambda: NOW + timedelta(seconds=10))


def test_valid_token(signer, verifier):
    user = verifier.verify(signer.issue("user-1", email="user@example.com"))

    assert user.user_id == "user-1"
    assert user.email == "user@example.com"
    assert user.authenticated_at == NOW + timedelta(seconds=10)


def test_expired_token(signer):
    late = TokenVerifier(SECRET, clock=lambda: NOW + timedelta(minutes=5))

    with pytest.raises(AuthenticationError, match="expired"):
        late.verify(signer.issue("user-1"))


def test_wrong_secret(signer):
    other = TokenVerifier("another-secret", clock=lambda: NOW)

    with pytest.raises(AuthenticationError, match="signature"):
        other.verify(signer.issue("user-1"))


def test_tampered_payload(signer, verifier):
    token = signer.issue("user-1")
    forged = TokenSigner(SECRET, clock=lambda: NOW).issue("admin")
    mixed = f"{forged.split('.')[0]}.{token.split('.')[1]}"

    with pytest.raises(AuthenticationError):
        verifier.verify(mixed)


@pytest.mark.parametrize("token", ["", "no-dot", "a.b.c", "abc.!!!"])
def test_malformed_tokens(verifier, token):
    with pytest.raises(AuthenticationError):
        verifier.verify(token)


def test_parse_bearer():
    assert parse_bearer("Bearer abc.def") == "abc.def"
    assert parse_bearer("bearer   abc.def ") == "abc.def"


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer "])
def test_parse_bearer_rejects(header):
    with pytest.raises(AuthenticationError):
        parse_bearer(header)
