"""Feed schemas"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from .item import ImageResponse, ItemResponse, TagResponse


class FeedItemResponse(BaseModel):
    """A positioned entry of today's feed"""

    entry_id: int
    position: int
    shown_at: Optional[datetime] = None
    item: ItemResponse
    images: List[ImageResponse]
    tags: List[TagResponse]

    class Config:
        from_attributes = True


class NextFeedItemResponse(BaseModel):
    """Cursor result: the next item, or exhausted"""

    exhausted: bool
    item: Optional[FeedItemResponse] = None
