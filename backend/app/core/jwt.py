"""
JWT token utilities.

Tokens are issued by the upstream identity provider; this module verifies
them and, for local runs and tests, can mint equivalent ones.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from backend.app.core.config import settings


def create_access_token(
    subject: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: Identity subject (becomes the actor id)
        role: One of "user", "driver", "admin"
        expires_delta: Optional custom expiration time
        extra_claims: Additional claims to embed

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "3f0c...",
            "role": "driver",
            "exp": 1234567890
        }
    """
    to_encode: Dict[str, Any] = dict(extra_claims or {})
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"sub": subject, "role": role, "exp": expire})

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate an access token.

    Returns:
        Decoded claim set if the signature and expiry are valid, None otherwise
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
