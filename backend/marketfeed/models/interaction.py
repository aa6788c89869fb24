"""Interaction model"""

from enum import Enum

from sqlalchemy import Column, Integer, String, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class InteractionType(str, Enum):
    """Ways a buyer can react to an item"""

    LIKE = "like"
    DISLIKE = "dislike"
    FAVORITE = "favorite"


class Interaction(Base, TimestampMixin):
    """User-Item interaction table, one row per (user, item)"""

    __tablename__ = "interactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    interaction_type = Column(String(20), nullable=False)

    # Relationships
    user = relationship("User", back_populates="interactions")
    item = relationship("Item", back_populates="interactions")

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_interaction_user_item"),
        Index("ix_interaction_user_type", "user_id", "interaction_type"),
    )

    def __repr__(self):
        return f"<Interaction(user_id={self.user_id}, item_id={self.item_id}, type='{self.interaction_type}')>"
