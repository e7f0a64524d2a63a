"""
Identity-provider token verification.

Callers present an OIDC ID token as a bearer credential. Its subject claim is
the stable owner ID under which artifacts and timeline events are stored.
Production keys come from the provider's JWKS endpoint; a shared HS256 secret
is accepted for local development and tests.
"""

from dataclasses import dataclass, field
from typing import Any

import jwt
from jwt import PyJWKClient

REQUIRED_CLAIMS = ["exp", "iat", "sub"]


@dataclass
class TokenIdentity:
    """Verified caller identity."""

    owner_id: str
    email: str | None = None
    roles: list[str] = field(default_factory=list)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "TokenIdentity":
        return cls(
            owner_id=str(claims["sub"]),
            email=claims.get("email"),
            roles=list(claims.get("roles") or []),
        )


class JWTValidator:
    """
    Verifies signature, issuer, audience and lifetime of ID tokens.

    Usage:
        validator = JWTValidator(
            issuer="https://securetoken.example.com/project",
            audience="project",
            jwks_url="https://example.com/.well-known/jwks.json",
        )
        identity = validator.validate_token(token)
    """

    def __init__(
        self,
        issuer: str,
        audience: str,
        jwks_url: str | None = None,
        secret: str | None = None,
        algorithms: list[str] | None = None,
    ):
        """
        Initialize JWT validator.

        Args:
            issuer: Expected iss claim.
            audience: Expected aud claim.
            jwks_url: Key set URL; enables RS256 verification.
            secret: Shared HS256 secret, used only when jwks_url is unset.
            algorithms: Override the accepted algorithms.
        """
        self._issuer = issuer
        self._audience = audience
        self._secret = secret
        self._jwks_client = PyJWKClient(jwks_url) if jwks_url else None
        default = ["RS256"] if self._jwks_client else ["HS256"]
        self._algorithms = algorithms or default

    def _signing_key(self, token: str) -> Any:
        if self._jwks_client is not None:
            return self._jwks_client.get_signing_key_from_jwt(token).key
        if self._secret:
            return self._secret
        raise ValueError("No signing key configured")

    def validate_token(self, token: str) -> TokenIdentity:
        """
        Verify a token and return the identity it asserts.

        Raises:
            jwt.PyJWTError: The token is malformed, expired, mis-signed, or
                issued for another audience or issuer.
            ValueError: Neither a key set nor a secret is configured.
        """
        claims = jwt.decode(
            token,
            self._signing_key(token),
            algorithms=self._algorithms,
            issuer=self._issuer,
            audience=self._audience,
            options={"require": REQUIRED_CLAIMS},
        )
        return TokenIdentity.from_claims(claims)


_jwt_validator: JWTValidator | None = None


def get_jwt_validator() -> JWTValidator:
    """Get the global JWT validator instance."""
    if _jwt_validator is None:
        raise RuntimeError("JWT validator not initialized. Call init_jwt_validator() first.")
    return _jwt_validator


def init_jwt_validator(
    issuer: str,
    audience: str,
    jwks_url: str | None = None,
    secret: str | None = None,
) -> JWTValidator:
    """Initialize the global JWT validator."""
    global _jwt_validator
    _jwt_validator = JWTValidator(
        issuer=issuer,
        audience=audience,
        jwks_url=jwks_url,
        secret=secret,
    )
    return _jwt_validator


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the credential from "Bearer <token>", or None for any other shape."""
    scheme, _, token = (authorization or "").strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        return None
    return token
