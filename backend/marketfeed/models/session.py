"""Authenticated session model"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from .base import Base
from ..utils.dates import utcnow


class UserSession(Base):
    """Server-side record of an issued token pair"""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    jti = Column(String(255), unique=True, nullable=False, index=True)
    device_id = Column(String(255))
    ip_address = Column(String(45))  # IPv6 max length
    user_agent = Column(String(500))
    issued_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    last_activity_at = Column(DateTime, nullable=False)
    is_revoked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="sessions")

    __table_args__ = (
        Index("ix_session_user_active", "user_id", "is_revoked"),
    )

    def __repr__(self):
        return f"<UserSession(user_id={self.user_id}, jti='{self.jti}', revoked={self.is_revoked})>"
