"""
Admin session model for JWT session tracking.

Every successful admin sign-in records a session row. The access token carries
the session id, so revoking the row on sign-out invalidates the token before
it expires.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column

from utils.datetime_utils import utc_now
from core.database import Base


class AdminSession(Base):
    """Signed-in admin session."""

    __tablename__ = "admin_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # uuid4
    email: Mapped[str] = mapped_column(String(255))
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_admin_sessions_email', 'email'),
    )

    @property
    def is_active(self) -> bool:
        """Not revoked and not yet expired."""
        if self.revoked_at is not None:
            return False
        expires_at = self.expires_at
        now = utc_now()
        if expires_at.tzinfo is None:
            # SQLite hands back naive values for timezone-aware columns
            now = now.replace(tzinfo=None)
        return expires_at > now
