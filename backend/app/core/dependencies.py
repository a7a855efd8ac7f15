"""
Authentication dependencies for FastAPI.

The identity token is verified here and turned into an ``Actor``. Account
records are not consulted: the claim set is trusted once its signature checks out.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from backend.app.core.exceptions import UnauthorizedError
from backend.app.core.jwt import decode_access_token
from backend.app.models.actor import Actor
from backend.app.models.enums import UserRole

# HTTP Bearer security scheme; missing headers are reported by us as 401
security = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Actor:
    """
    FastAPI dependency for bearer-token authentication.

    Checks:
    1. A bearer token is present
    2. Signature and expiry are valid
    3. ``sub`` is a non-empty string and ``role`` is a known role

    Raises:
        UnauthorizedError: 401 if any check fails
    """
    if credentials is None:
        raise UnauthorizedError("Missing bearer token")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedError("Could not validate credentials")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise UnauthorizedError("Invalid token payload")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise UnauthorizedError("Invalid role in token")

    return Actor(id=subject, role=role)
