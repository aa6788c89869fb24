"""Interaction schemas"""

from pydantic import BaseModel
from datetime import datetime

from ..models.interaction import InteractionType


class InteractionCreate(BaseModel):
    """Schema for recording an interaction"""

    item_id: int
    interaction_type: InteractionType


class InteractionResponse(BaseModel):
    """Schema for interaction response"""

    id: int
    user_id: int
    item_id: int
    interaction_type: InteractionType
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
