# app/core/dependencies.py
import logging
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import IdentityResolver, TokenAuthenticator
from app.database import get_db
from app.exceptions.base import AuthenticationError

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_authenticator() -> TokenAuthenticator:
    return TokenAuthenticator()


def get_identity_resolver() -> IdentityResolver:
    return IdentityResolver()


async def validate_token(
    token: HTTPAuthorizationCredentials = Depends(security),
    authenticator: TokenAuthenticator = Depends(get_authenticator),
) -> dict:
    """Validate and decode the bearer token.

    Returns:
        dict: Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    if not token or not token.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return authenticator.verify_token(token.credentials)
    except AuthenticationError as e:
        logger.warning("Token validation error: %s", e.message)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user_id(
    request: Request,
    payload: dict = Depends(validate_token),
) -> UUID:
    """Get the authenticated caller id from the token payload.

    Returns:
        UUID: Caller id

    Raises:
        HTTPException: If the payload does not carry a usable user id
    """
    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload - missing user ID",
        )
    try:
        user_id = UUID(str(subject))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload - user ID is not a UUID",
        ) from e

    # Add user info to request state for logging
    request.state.user_id = user_id
    return user_id


async def get_relay_user_id(
    request: Request,
    token: HTTPAuthorizationCredentials | None = Depends(optional_security),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> UUID:
    """Resolve the caller for relay endpoints, substituting the fallback identity.

    Raises:
        AuthenticationError: If no identity resolves and the fallback is disabled
    """
    user_id, used_fallback = resolver.resolve(token.credentials if token else None)
    request.state.user_id = user_id
    request.state.fallback_identity = used_fallback
    return user_id


def uses_fallback_identity(request: Request) -> bool:
    """Whether the relay caller was resolved to the fallback identity."""
    return getattr(request.state, "fallback_identity", False)


__all__ = [
    "get_db",
    "get_authenticator",
    "get_identity_resolver",
    "validate_token",
    "get_current_user_id",
    "get_relay_user_id",
    "uses_fallback_identity",
]
