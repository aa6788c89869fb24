"""Interaction API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from ..models import User
from ..schemas.interaction import InteractionCreate, InteractionResponse
from ..schemas.item import ItemDetailResponse
from ..services.interactions import InteractionService
from ..utils.dependencies import get_interaction_service, require_buyer

router = APIRouter()


@router.post("/", response_model=InteractionResponse)
def record_interaction(
    interaction: InteractionCreate,
    current_user: User = Depends(require_buyer),
    service: InteractionService = Depends(get_interaction_service),
):
    """
    Like, dislike or favorite an item

    A user has at most one interaction per item; recording another one
    replaces its type.
    """
    return service.interact(current_user.id, interaction.item_id, interaction.interaction_type)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_interaction(
    item_id: int,
    current_user: User = Depends(require_buyer),
    service: InteractionService = Depends(get_interaction_service),
):
    """Remove the interaction with an item (no-op if there is none)"""
    service.remove_interaction(current_user.id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/", response_model=List[InteractionResponse])
def get_interaction_history(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_buyer),
    service: InteractionService = Depends(get_interaction_service),
):
    """Interaction history, most recent first"""
    return service.get_history(current_user.id, skip=skip, limit=limit)


@router.get("/favorites", response_model=List[ItemDetailResponse])
def get_favorites(
    current_user: User = Depends(require_buyer),
    service: InteractionService = Depends(get_interaction_service),
):
    """Favorited items in the order they were favorited"""
    return service.get_favorites(current_user.id)
