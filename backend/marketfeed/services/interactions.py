"""Buyer interactions: like, dislike, favorite"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..exceptions import NotFoundError
from ..models import Interaction, InteractionType, Item
from ..utils.logging import get_logger
from ..utils.metrics import record_interaction

logger = get_logger(__name__)


class InteractionService:
    """One interaction per (user, item); re-interacting overwrites the type"""

    def __init__(self, db: Session):
        self.db = db

    def interact(self, user_id: int, item_id: int, interaction_type: InteractionType) -> Interaction:
        if self.db.get(Item, item_id) is None:
            raise NotFoundError("item", item_id)

        interaction = self._find(user_id, item_id)

        if interaction is None:
            interaction = Interaction(
                user_id=user_id,
                item_id=item_id,
                interaction_type=interaction_type.value,
            )
            self.db.add(interaction)
            try:
                self.db.commit()
            except IntegrityError:
                # A concurrent first interaction won the insert; overwrite it
                self.db.rollback()
                logger.debug("Interaction inserted concurrently, updating", user_id=user_id, item_id=item_id)
                interaction = self._find(user_id, item_id)
                interaction.interaction_type = interaction_type.value
                self.db.commit()
        else:
            interaction.interaction_type = interaction_type.value
            self.db.commit()

        self.db.refresh(interaction)

        record_interaction(interaction_type.value)
        logger.debug("Interaction recorded", user_id=user_id, item_id=item_id, type=interaction_type.value)
        return interaction

    def _find(self, user_id: int, item_id: int) -> Optional[Interaction]:
        return (
            self.db.query(Interaction)
            .filter(Interaction.user_id == user_id, Interaction.item_id == item_id)
            .first()
        )

    def remove_interaction(self, user_id: int, item_id: int) -> bool:
        """Delete the interaction if present; returns whether a row was removed"""
        deleted = (
            self.db.query(Interaction)
            .filter(Interaction.user_id == user_id, Interaction.item_id == item_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0

    def get_history(self, user_id: int, skip: int = 0, limit: int = 100) -> List[Interaction]:
        return (
            self.db.query(Interaction)
            .filter(Interaction.user_id == user_id)
            .order_by(Interaction.updated_at.desc(), Interaction.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_favorites(self, user_id: int) -> List[Item]:
        """Favorited items in the order they were favorited"""
        favorites = (
            self.db.query(Interaction)
            .options(selectinload(Interaction.item).selectinload(Item.images))
            .filter(
                Interaction.user_id == user_id,
                Interaction.interaction_type == InteractionType.FAVORITE.value,
            )
            .order_by(Interaction.updated_at, Interaction.id)
            .all()
        )
        return [favorite.item for favorite in favorites]
