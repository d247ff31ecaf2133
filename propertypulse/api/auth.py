"""Caller identity for the API.

The caller is identified by an explicit bearer JWT whose ``sub`` claim is
the user id. Issuing tokens for real users is left to the identity provider;
create_access_token exists for tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
import logging

from ..config import settings

logger = logging.getLogger(__name__)

# Missing credentials resolve to "no identity" rather than an immediate 401
security = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token.

    Args:
        user_id: Identity to encode as the subject
        expires_delta: Token expiration time

    Returns:
        str: JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.api.access_token_expire_minutes)

    to_encode = {"sub": user_id, "exp": datetime.now(timezone.utc) + expires_delta}
    return jwt.encode(to_encode, settings.api.secret_key, algorithm=settings.api.algorithm)


def resolve_identity(token: Optional[str]) -> Optional[str]:
    """Resolve a bearer token to a user id.

    Args:
        token: Raw JWT, may be None

    Returns:
        Optional[str]: The user id, or None for missing, expired or invalid tokens
    """
    if not token:
        return None

    try:
        payload = jwt.decode(token, settings.api.secret_key, algorithms=[settings.api.algorithm])
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        return None

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        return None
    return user_id


async def get_caller_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Get the caller identity if a valid token is provided, otherwise None."""
    if not credentials:
        return None
    return resolve_identity(credentials.credentials)
