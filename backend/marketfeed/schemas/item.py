"""Item and tag schemas"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class TagCreate(BaseModel):
    """Schema for creating (or finding) a tag"""

    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=50)


class TagResponse(TagCreate):
    id: int

    class Config:
        from_attributes = True


class ImageResponse(BaseModel):
    id: int
    image_url: str

    class Config:
        from_attributes = True


class ItemBase(BaseModel):
    """Base item schema"""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price_amount: int = Field(..., ge=0, description="Price in minor units")
    price_currency: str = Field("USD", min_length=3, max_length=3, description="ISO 4217 code")


class ItemCreate(ItemBase):
    """Schema for creating an item"""

    image_urls: List[str] = Field(..., min_length=1)
    tag_ids: List[int] = []


class ItemUpdate(BaseModel):
    """Schema for updating an item"""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price_amount: Optional[int] = Field(None, ge=0)
    price_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    is_active: Optional[bool] = None


class ItemResponse(ItemBase):
    """Schema for item response"""

    id: int
    seller_id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ItemDetailResponse(ItemResponse):
    """Item with images and tags"""

    images: List[ImageResponse] = []
    tags: List[TagResponse] = []


class ImageUrlsRequest(BaseModel):
    image_urls: List[str] = Field(..., min_length=1)


class TagIdsRequest(BaseModel):
    tag_ids: List[int] = Field(..., min_length=1)
