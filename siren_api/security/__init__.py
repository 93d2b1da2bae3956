"""Authentication for the design API."""

from .tokens import TokenSigner, TokenVerifier, UserContext, parse_bearer

__all__ = ["TokenSigner", "TokenVerifier", "UserContext", "parse_bearer"]
