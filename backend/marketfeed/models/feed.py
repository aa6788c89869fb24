"""Daily feed model"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base
from ..utils.dates import utcnow


class DailyFeedEntry(Base):
    """One positioned item in a user's feed for a calendar day"""

    __tablename__ = "daily_feed_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    feed_date = Column(Date, nullable=False)
    position = Column(Integer, nullable=False)  # 1-based, never mutated
    shown_at = Column(DateTime, nullable=True)  # Set once, on first delivery
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="feed_entries")
    item = relationship("Item", back_populates="feed_entries")

    # At most one partition per (user, day)
    __table_args__ = (
        UniqueConstraint("user_id", "feed_date", "position", name="uq_feed_user_date_position"),
        Index("ix_feed_user_date", "user_id", "feed_date"),
    )

    def __repr__(self):
        return f"<DailyFeedEntry(user_id={self.user_id}, date={self.feed_date}, position={self.position})>"
