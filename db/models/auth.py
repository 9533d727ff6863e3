"""
Auth models for refresh-session management.

RefreshSessionRecord: one row per issued, not yet consumed refresh token.
"""

import uuid

from sqlalchemy import BigInteger, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from db.engine import Base


class RefreshSessionRecord(Base):
    """
    Refresh session row.

    Holds the bcrypt hash of the refresh token, never the token itself.
    Rotation deletes the row and inserts a successor; rows are not updated.
    """
    __tablename__ = "refresh_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    secret_hash = Column(Text, nullable=False)
    expires_at = Column(BigInteger, nullable=False)  # Microseconds since the epoch, UTC
    created_at = Column(BigInteger, nullable=False)  # Microseconds since the epoch, UTC

    # Relationship
    user = relationship("User", back_populates="refresh_sessions")

    __table_args__ = (
        Index("ix_refresh_sessions_user_expires", "user_id", "expires_at"),
    )

    def __repr__(self):
        return f"<RefreshSessionRecord(id={self.id}, user_id={self.user_id})>"
