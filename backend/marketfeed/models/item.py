"""Item model"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin
from .tag import item_tags
from ..utils.dates import utcnow


class Item(Base, TimestampMixin):
    """Item listed by a seller"""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    price_amount = Column(Integer, nullable=False)  # Minor units (cents)
    price_currency = Column(String(3), nullable=False, default="USD")  # ISO 4217
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Relationships
    seller = relationship("User", back_populates="items")
    images = relationship(
        "ItemImage", back_populates="item", cascade="all, delete-orphan", order_by="ItemImage.id"
    )
    tags = relationship("Tag", secondary=item_tags, back_populates="items", order_by="Tag.id")
    interactions = relationship("Interaction", back_populates="item", cascade="all, delete-orphan")
    feed_entries = relationship("DailyFeedEntry", back_populates="item", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Item(id={self.id}, title='{self.title}')>"


class ItemImage(Base):
    """Image attached to an item"""

    __tablename__ = "item_images"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    item = relationship("Item", back_populates="images")

    def __repr__(self):
        return f"<ItemImage(item_id={self.item_id}, url='{self.image_url}')>"
