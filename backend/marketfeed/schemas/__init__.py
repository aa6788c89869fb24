"""Pydantic schemas for request/response validation"""

from .user import UserCreate, UserResponse
from .auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RevokedResponse,
    SessionResponse,
    TokenResponse,
)
from .item import (
    ImageResponse,
    ImageUrlsRequest,
    ItemCreate,
    ItemDetailResponse,
    ItemResponse,
    ItemUpdate,
    TagCreate,
    TagIdsRequest,
    TagResponse,
)
from .interaction import InteractionCreate, InteractionResponse
from .feed import FeedItemResponse, NextFeedItemResponse

__all__ = [
    "UserCreate",
    "UserResponse",
    "AuthResponse",
    "LoginRequest",
    "MessageResponse",
    "RefreshTokenRequest",
    "RevokedResponse",
    "SessionResponse",
    "TokenResponse",
    "ImageResponse",
    "ImageUrlsRequest",
    "ItemCreate",
    "ItemDetailResponse",
    "ItemResponse",
    "ItemUpdate",
    "TagCreate",
    "TagIdsRequest",
    "TagResponse",
    "InteractionCreate",
    "InteractionResponse",
    "FeedItemResponse",
    "NextFeedItemResponse",
]
