"""User schemas"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class UserBase(BaseModel):
    """Base user schema"""

    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)


class UserCreate(UserBase):
    """Schema for creating a user"""

    password: str = Field(..., min_length=8, max_length=128)


class UserResponse(UserBase):
    """Schema for user response"""

    id: int
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
