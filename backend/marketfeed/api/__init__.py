"""API routes"""

from fastapi import APIRouter
from .auth import router as auth_router
from .users import router as users_router
from .items import router as items_router
from .tags import router as tags_router
from .interactions import router as interactions_router
from .feed import router as feed_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
api_router.include_router(items_router, prefix="/items", tags=["items"])
api_router.include_router(tags_router, prefix="/tags", tags=["tags"])
api_router.include_router(interactions_router, prefix="/interactions", tags=["interactions"])
api_router.include_router(feed_router, prefix="/feed", tags=["feed"])
