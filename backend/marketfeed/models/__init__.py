"""Database models"""

from .base import Base
from .user import User, UserRole
from .tag import Tag, item_tags
from .item import Item, ItemImage
from .interaction import Interaction, InteractionType
from .feed import DailyFeedEntry
from .session import UserSession

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Tag",
    "item_tags",
    "Item",
    "ItemImage",
    "Interaction",
    "InteractionType",
    "DailyFeedEntry",
    "UserSession",
]
