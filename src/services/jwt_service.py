"""
JWT Service for admin access tokens and password hashing.

Provides token creation and validation plus bcrypt helpers for the
configured admin accounts.
"""

import bcrypt
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from pydantic import BaseModel, ValidationError

from core import config


class TokenPayload(BaseModel):
    """Payload structure for JWT tokens."""
    sub: str  # admin email
    sid: str  # admin session id, checked against admin_sessions
    iat: Optional[int] = None  # Set by JWT service
    exp: Optional[int] = None  # Set by JWT service


class JWTService:
    """Service for JWT token operations."""

    ALGORITHM = "HS256"

    @classmethod
    def _get_secret_key(cls) -> str:
        """Get the JWT secret key."""
        return config.JWT_SECRET_KEY

    @classmethod
    def get_token_expiry(cls) -> datetime:
        """Expiry of an access token issued now."""
        return datetime.now(timezone.utc) + timedelta(minutes=config.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    @classmethod
    def create_access_token(cls, email: str, session_id: str) -> Tuple[str, datetime]:
        """
        Create a JWT access token bound to an admin session.

        Returns:
            (encoded token, expiry)
        """
        now = datetime.now(timezone.utc)
        expire = cls.get_token_expiry()
        to_encode = TokenPayload(sub=email, sid=session_id).model_dump(exclude_none=True)
        to_encode.update({"exp": expire, "iat": now})
        encoded_jwt = jwt.encode(to_encode, cls._get_secret_key(), algorithm=cls.ALGORITHM)
        return encoded_jwt, expire

    @classmethod
    def verify_token(cls, token: str) -> Optional[TokenPayload]:
        """Verify and decode a JWT token. Returns None for expired or invalid tokens."""
        try:
            payload = jwt.decode(token, cls._get_secret_key(), algorithms=[cls.ALGORITHM])
            return TokenPayload(**payload)
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None
        except ValidationError:
            return None

    @classmethod
    def hash_password(cls, password: str) -> str:
        """bcrypt hash suitable for the ADMIN_ACCOUNTS setting."""
        return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    @classmethod
    def verify_password(cls, password: str, hashed_password: str) -> bool:
        """Check a password against its bcrypt hash."""
        try:
            return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))
        except ValueError:
            # Malformed hash in configuration
            return False
