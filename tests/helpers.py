"""
Test utilities for dental booking tests.
"""

import jwt
from datetime import datetime, timedelta, timezone

from core.config import JWT_SECRET_KEY


def create_jwt_token(email: str, session_id: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Create an admin access token without opening a session row."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "sid": session_id,
        "exp": now + expires_in,
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm="HS256")
