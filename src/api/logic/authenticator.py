"""
Bearer credential verification for the ingestion pipeline.
"""

import logging

import jwt

from api.logic.exceptions import ServerMisconfigurationError, UnauthorizedError
from medintake_lib.helpers.auth import JWTValidator, extract_bearer_token

logger = logging.getLogger(__name__)


class BearerAuthenticator:
    """Resolves an Authorization header value to a stable owner ID."""

    def __init__(self, validator: JWTValidator) -> None:
        """
        Initialize authenticator.

        Args:
            validator: Identity provider token validator.
        """
        self._validator = validator

    async def authenticate(self, authorization: str | None) -> str:
        """
        Verify the bearer credential.

        Args:
            authorization: Raw Authorization header value.

        Returns:
            Owner ID (token subject).

        Raises:
            UnauthorizedError: If the header is missing, not a bearer
                credential, or the token fails verification.
            ServerMisconfigurationError: If no signing key is configured.
        """
        token = extract_bearer_token(authorization)
        if not token:
            raise UnauthorizedError("Missing Authorization header")

        try:
            identity = self._validator.validate_token(token)
        except jwt.PyJWTError as e:
            logger.warning(f"⚠️ Token verification failed: {e}")
            raise UnauthorizedError("Invalid or expired token") from e
        except ValueError as e:
            logger.error(f"❌ Token validator misconfigured: {e}")
            raise ServerMisconfigurationError() from e

        return identity.owner_id
