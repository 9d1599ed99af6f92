"""
Authentication utilities for JWT token management.
Tokens carry only the user id as subject plus issue and expiry times.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from rental_api.config import settings
import uuid


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, exp: datetime, iat: Optional[datetime] = None):
        self.user_id = user_id
        self.exp = exp
        self.iat = iat

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from dictionary."""
        issued_at = data.get("iat")
        return cls(
            user_id=data["sub"],
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(issued_at, tz=timezone.utc) if issued_at else None
        )


def create_access_token(
    user_id: uuid.UUID,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed JWT access token for a user.

    Args:
        user_id: User's UUID
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str) -> TokenPayload:
    """
    Verify and decode JWT token.

    Signature and expiry are checked by python-jose; an expired token raises
    ``jose.ExpiredSignatureError`` (a ``JWTError`` subclass).

    Args:
        token: JWT token string

    Returns:
        Decoded TokenPayload

    Raises:
        JWTError: If token is invalid or expired
    """
    payload = jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm]
    )

    if not payload.get("sub") or not payload.get("exp"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)
