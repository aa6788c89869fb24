"""Authentication schemas"""

from pydantic import BaseModel, EmailStr
from datetime import datetime
from typing import Optional

from .user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema"""

    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema"""

    refresh_token: str


class TokenResponse(BaseModel):
    """Token response schema"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class AuthResponse(TokenResponse):
    """Tokens plus the authenticated user"""

    user: UserResponse


class SessionResponse(BaseModel):
    """An active session as seen by its owner"""

    id: int
    device_id: Optional[str]
    ip_address: Optional[str]
    user_agent: Optional[str]
    issued_at: datetime
    expires_at: datetime
    last_activity_at: datetime
    is_current: bool

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str


class RevokedResponse(MessageResponse):
    revoked: int
