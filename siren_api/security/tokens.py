"""
Bearer token verification for the design API.

Tokens have the form ``<payload>.<signature>`` where ``payload`` is the
base64url-encoded JSON claims object and ``signature`` is the base64url
HMAC-SHA256 of the payload segment. The signing key is derived from the
configured secret with scrypt, so the raw secret never signs anything.
"""

import binascii
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Callable, Optional

from ..errors import AuthenticationError
from .crypto import (
    TOKEN_KEY_SALT, b64url_decode, b64url_encode, derive_key, sign_bytes,
    verify_signature
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class UserContext:
    """Identity of an authenticated caller."""
    user_id: str
    email: Optional[str] = None
    authenticated_at: Optional[datetime] = None


class TokenSigner:
    """Mint tokens accepted by ``TokenVerifier``. Used by tooling and tests."""

    def __init__(self, secret: str, ttl_seconds: int = 3600, clock: Clock = _utcnow):
        self._key = derive_key(secret, TOKEN_KEY_SALT)
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, user_id: str, email: Optional[str] = None, ttl_seconds: Optional[int] = None) -> str:
        issued_at = self._clock()
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        claims = {
            "sub": user_id,
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + timedelta(seconds=ttl)).timestamp()),
        }
        payload = b64url_encode(json.dumps(claims, separators=(",", ":")).encode("utf-8"))
        signature = b64url_encode(sign_bytes(self._key, payload.encode("ascii")))
        return f"{payload}.{signature}"


class TokenVerifier:
    """Verify bearer tokens and yield the caller's ``UserContext``."""

    def __init__(self, secret: str, clock: Clock = _utcnow):
        self._key = derive_key(secret, TOKEN_KEY_SALT)
        self._clock = clock

    def verify(self, token: str) -> UserContext:
        """
        Verify a token's signature and expiry.

        Raises:
            AuthenticationError: if the token is malformed, forged or expired.
        """
        if not token or token.count(".") != 1:
            raise AuthenticationError("Malformed token")

        payload, signature = token.split(".")
        try:
            signature_bytes = b64url_decode(signature)
        except (binascii.Error, ValueError) as e:
            raise AuthenticationError("Malformed token signature") from e

        if not verify_signature(self._key, payload.encode("ascii", "replace"), signature_bytes):
            logger.warning("Rejected token with invalid signature")
            raise AuthenticationError("Invalid token signature")

        try:
            claims = json.loads(b64url_decode(payload))
        except (binascii.Error, ValueError) as e:
            raise AuthenticationError("Malformed token payload") from e

        if not isinstance(claims, dict) or not claims.get("sub"):
            raise AuthenticationError("Token has no subject")

        now = self._clock()
        expires_at = claims.get("exp")
        if not isinstance(expires_at, (int, float)) or now.timestamp() >= expires_at:
            raise AuthenticationError("Token expired", {"user_id": claims.get("sub")})

        return UserContext(
            user_id=str(claims["sub"]),
            email=claims.get("email"),
            authenticated_at=now,
        )


def parse_bearer(header: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer`` header value."""
    if not header:
        raise AuthenticationError("Missing Authorization header")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must use the Bearer scheme")
    return token.strip()
