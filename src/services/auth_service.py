"""
Admin authentication: password sign-in, sign-out and session lookup.

Admin accounts come from configuration (email to bcrypt hash). A sign-in
records an ``admin_sessions`` row and returns an access token carrying its id;
sign-out revokes the row so the token stops working before it expires.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status

from core import config
from core.database import RecordStore
from models import AdminSession
from services.jwt_service import JWTService
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class SignInResult:
    access_token: str
    expires_at: datetime
    session: AdminSession
    token_type: str = "bearer"


class AuthService:
    """Service class for admin sessions."""

    @staticmethod
    def sign_in_with_password(store: RecordStore, email: str, password: str) -> SignInResult:
        """
        Authenticate an admin account and open a session.

        Raises:
            HTTPException: 401 for an unknown email or a wrong password
        """
        normalized_email = (email or "").strip().lower()
        password_hash = config.ADMIN_ACCOUNTS.get(normalized_email)
        if password_hash is None or not JWTService.verify_password(password or "", password_hash):
            logger.warning(f"Failed admin sign-in for {normalized_email or '<empty>'}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Correo o contraseña incorrectos"
            )

        session_id = str(uuid.uuid4())
        access_token, expires_at = JWTService.create_access_token(normalized_email, session_id)
        session = store.insert(AdminSession, [{
            "id": session_id,
            "email": normalized_email,
            "expires_at": expires_at,
        }])[0]

        logger.info(f"Admin {normalized_email} signed in (session {session_id})")
        return SignInResult(access_token=access_token, expires_at=expires_at, session=session)

    @staticmethod
    def get_session(store: RecordStore, token: Optional[str]) -> Optional[AdminSession]:
        """The active session behind a token, or None if the token is invalid, expired or revoked."""
        if not token:
            return None
        payload = JWTService.verify_token(token)
        if payload is None:
            return None
        session = store.first(AdminSession, id=payload.sid)
        if session is None or session.email != payload.sub or not session.is_active:
            return None
        return session

    @staticmethod
    def sign_out(store: RecordStore, token: Optional[str]) -> bool:
        """
        Revoke the session behind a token.

        Returns:
            True if an active session was revoked, False if there was none
        """
        session = AuthService.get_session(store, token)
        if session is None:
            return False
        store.update(AdminSession, {"id": session.id}, {"revoked_at": utc_now()})
        logger.info(f"Admin {session.email} signed out (session {session.id})")
        return True
