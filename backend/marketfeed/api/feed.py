"""Daily feed API endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from ..models import User
from ..schemas.feed import FeedItemResponse, NextFeedItemResponse
from ..services.feed import FeedService
from ..utils.dependencies import get_feed_service, require_buyer

router = APIRouter()


@router.get("/today", response_model=List[FeedItemResponse])
def get_todays_feed(
    current_user: User = Depends(require_buyer),
    feed_service: FeedService = Depends(get_feed_service),
):
    """
    Get today's feed

    Generated on the first request of the day, then returned unchanged for
    the rest of it. Entries already shown keep their shown_at.
    """
    return [FeedItemResponse.model_validate(detail) for detail in feed_service.get_todays_feed(current_user.id)]


@router.get("/next", response_model=NextFeedItemResponse)
def get_next_feed_item(
    current_user: User = Depends(require_buyer),
    feed_service: FeedService = Depends(get_feed_service),
):
    """Deliver the next unseen item of today's feed"""
    detail = feed_service.get_next_unshown(current_user.id)
    if detail is None:
        return NextFeedItemResponse(exhausted=True)

    return NextFeedItemResponse(exhausted=False, item=FeedItemResponse.model_validate(detail))
