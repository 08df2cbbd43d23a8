"""Authentication of callers against Supabase Auth."""

from typing import Optional

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.exceptions import AuthenticationError
from app.models import AuthenticatedUser
from app.supabase_client import get_supabase_client

logger = structlog.get_logger(__name__)

# auto_error=False so a missing header is reported as 401, not 403
security = HTTPBearer(auto_error=False)


def verify_access_token(token: str) -> AuthenticatedUser:
    """
    Resolve the user behind a Supabase access token.

    The token is validated by Supabase Auth itself, which also rejects
    expired and revoked sessions.

    Args:
        token: JWT access token issued by Supabase Auth

    Returns:
        The authenticated user

    Raises:
        AuthenticationError: If the token is rejected or names no user
    """
    client = get_supabase_client()

    try:
        response = client.auth.get_user(token)
    except Exception as e:
        logger.warning("Token validation failed", error=str(e))
        raise AuthenticationError()

    user = getattr(response, "user", None) if response else None
    if user is None or not getattr(user, "id", None):
        logger.warning("Unauthorized: no user found for token")
        raise AuthenticationError()

    logger.debug("User authenticated", user_id=user.id)
    return AuthenticatedUser(id=str(user.id), email=user.email)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthenticatedUser:
    """
    Get current authenticated user from the bearer token.

    Args:
        credentials: HTTP Bearer token from Authorization header

    Returns:
        AuthenticatedUser

    Raises:
        AuthenticationError: 401 if token is invalid or missing
    """
    if credentials is None or not credentials.credentials:
        logger.warning("Unauthorized: missing bearer token")
        raise AuthenticationError()

    return verify_access_token(credentials.credentials)
