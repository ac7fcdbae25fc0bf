"""Security related functions."""

import logging
from uuid import UUID

import jwt
from jwt import InvalidTokenError

from app.core.config import settings
from app.exceptions.base import AuthenticationError

logger = logging.getLogger(__name__)


class TokenAuthenticator:
    """
    Decodes bearer tokens issued by the hosted auth provider.

    Authentication itself lives outside this service; the only thing taken
    from a token is the ``sub`` claim naming the caller. When a signing
    secret is configured the signature is verified, otherwise the token is
    decoded without verification (local development).

    :ivar secret_key: Secret used to verify token signatures, if any.
    :type secret_key: str | None
    """

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None):
        self.secret_key = secret_key if secret_key is not None else settings.auth_jwt_secret
        self.algorithm = algorithm or settings.auth_jwt_algorithm

    def verify_token(self, token: str) -> dict:
        """
        Decode a token and return its payload.

        :param token: The raw bearer token.
        :return: The decoded payload.
        :raises AuthenticationError: If the token cannot be decoded.
        """
        try:
            if self.secret_key:
                return jwt.decode(
                    token,
                    key=self.secret_key,
                    algorithms=[self.algorithm],
                    options={"verify_aud": False},
                )
            return jwt.decode(
                token,
                key="",
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_exp": False,
                },
            )
        except InvalidTokenError as e:
            raise AuthenticationError(f"Invalid authentication token: {str(e)}") from e

    def get_user_id(self, token: str) -> UUID:
        """Return the caller id carried in the token's ``sub`` claim."""
        payload = self.verify_token(token)
        subject = payload.get("sub")
        if not subject:
            raise AuthenticationError("Invalid token payload - missing user ID")
        try:
            return UUID(str(subject))
        except ValueError as e:
            raise AuthenticationError("Invalid token payload - user ID is not a UUID") from e


class IdentityResolver:
    """
    Resolves the identity forwarded to the workflow engine.

    Anonymous or unresolvable callers get ``fallback_user_id`` while
    ``allow_fallback`` is on; with it off the resolver fails closed.
    """

    def __init__(
        self,
        authenticator: TokenAuthenticator | None = None,
        fallback_user_id: UUID | None = None,
        allow_fallback: bool | None = None,
    ):
        self.authenticator = authenticator or TokenAuthenticator()
        self.fallback_user_id = fallback_user_id or settings.fallback_user_id
        self.allow_fallback = (
            settings.allow_fallback_identity if allow_fallback is None else allow_fallback
        )

    def resolve(self, token: str | None) -> tuple[UUID, bool]:
        """Return ``(user_id, used_fallback)``."""
        if token:
            try:
                return self.authenticator.get_user_id(token), False
            except AuthenticationError as e:
                logger.warning(f"Could not resolve caller identity: {e.message}")

        if not self.allow_fallback:
            raise AuthenticationError("Caller identity could not be resolved")

        logger.info(f"Using fallback identity {self.fallback_user_id}")
        return self.fallback_user_id, True
