"""Domain services"""

from .recommendation import RecommendationService, TieredSelector
from .feed import FeedService
from .session import SessionService
from .auth import AuthService
from .interactions import InteractionService
from .catalog import CatalogService

__all__ = [
    "RecommendationService",
    "TieredSelector",
    "FeedService",
    "SessionService",
    "AuthService",
    "InteractionService",
    "CatalogService",
]
