"""Tag model and item-tag association"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship
from .base import Base
from ..utils.dates import utcnow

item_tags = Table(
    "item_tags",
    Base.metadata,
    Column("item_id", Integer, ForeignKey("items.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, default=utcnow, nullable=False),
)


class Tag(Base):
    """Tag table; weight is derived per user from interactions"""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)  # size, style, color, ...
    created_at = Column(DateTime, default=utcnow, nullable=False)

    items = relationship("Item", secondary=item_tags, back_populates="tags")

    def __repr__(self):
        return f"<Tag(name='{self.name}', category='{self.category}')>"
