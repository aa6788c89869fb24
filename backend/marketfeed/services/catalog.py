"""Seller-side item, image and tag management"""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import DomainRuleViolation, NotFoundError, PermissionDeniedError
from ..models import Item, ItemImage, Tag
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Columns an update may change but never clear
REQUIRED_ITEM_FIELDS = ("title", "price_amount", "price_currency", "is_active")


class CatalogService:
    """Items belong to their seller; only the owner may change them"""

    def __init__(self, db: Session, max_images: Optional[int] = None):
        self.db = db
        self.max_images = max_images or settings.MAX_ITEM_IMAGES

    # Items

    def get_item(self, item_id: int) -> Optional[Item]:
        return self.db.get(Item, item_id)

    def _owned_item(self, item_id: int, seller_id: int, action: str) -> Item:
        item = self.get_item(item_id)
        if item is None:
            raise NotFoundError("item", item_id)
        if item.seller_id != seller_id:
            raise PermissionDeniedError(action, "item", item_id)
        return item

    def _resolve_tags(self, tag_ids: Iterable[int]) -> List[Tag]:
        tag_ids = list(dict.fromkeys(tag_ids))
        if not tag_ids:
            return []

        tags = self.db.query(Tag).filter(Tag.id.in_(tag_ids)).all()
        missing = set(tag_ids) - {tag.id for tag in tags}
        if missing:
            raise NotFoundError("tag", sorted(missing))
        return tags

    def create_item(
        self,
        seller_id: int,
        title: str,
        price_amount: int,
        image_urls: List[str],
        tag_ids: Iterable[int] = (),
        description: Optional[str] = None,
        price_currency: Optional[str] = None,
    ) -> Item:
        if not image_urls:
            raise DomainRuleViolation("At least one image is required")
        if len(image_urls) > self.max_images:
            raise DomainRuleViolation(
                f"Maximum {self.max_images} images allowed",
                details={"max_images": self.max_images},
            )

        item = Item(
            seller_id=seller_id,
            title=title,
            description=description,
            price_amount=price_amount,
            price_currency=(price_currency or settings.DEFAULT_CURRENCY).upper(),
            is_active=True,
        )
        item.images = [ItemImage(image_url=url) for url in image_urls]
        item.tags = self._resolve_tags(tag_ids)

        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)

        logger.info("Item created", item_id=item.id, seller_id=seller_id, tags=len(item.tags))
        return item

    def update_item(self, item_id: int, seller_id: int, **changes) -> Item:
        item = self._owned_item(item_id, seller_id, "update")

        cleared = sorted(field for field in REQUIRED_ITEM_FIELDS if field in changes and changes[field] is None)
        if cleared:
            raise DomainRuleViolation(
                f"Fields cannot be null: {', '.join(cleared)}",
                details={"fields": cleared},
            )

        for field, value in changes.items():
            if field == "price_currency" and value:
                value = value.upper()
            setattr(item, field, value)

        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item_id: int, seller_id: int) -> None:
        item = self._owned_item(item_id, seller_id, "delete")
        self.db.delete(item)
        self.db.commit()
        logger.info("Item deleted", item_id=item_id, seller_id=seller_id)

    def get_seller_items(self, seller_id: int, skip: int = 0, limit: Optional[int] = None) -> List[Item]:
        return (
            self.db.query(Item)
            .filter(Item.seller_id == seller_id)
            .order_by(Item.id)
            .offset(skip)
            .limit(limit or settings.ITEMS_PER_PAGE)
            .all()
        )

    # Images

    def add_images(self, item_id: int, seller_id: int, image_urls: List[str]) -> List[ItemImage]:
        item = self._owned_item(item_id, seller_id, "modify")

        if len(item.images) + len(image_urls) > self.max_images:
            raise DomainRuleViolation(
                f"Maximum {self.max_images} images allowed per item",
                details={"max_images": self.max_images, "current": len(item.images)},
            )

        item.images.extend(ItemImage(image_url=url) for url in image_urls)
        self.db.commit()
        self.db.refresh(item)
        return list(item.images)

    def delete_image(self, item_id: int, seller_id: int, image_id: int) -> bool:
        self._owned_item(item_id, seller_id, "modify")

        deleted = (
            self.db.query(ItemImage)
            .filter(ItemImage.id == image_id, ItemImage.item_id == item_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0

    # Tags

    def add_tags(self, item_id: int, seller_id: int, tag_ids: Iterable[int]) -> List[Tag]:
        item = self._owned_item(item_id, seller_id, "modify")

        for tag in self._resolve_tags(tag_ids):
            if tag not in item.tags:
                item.tags.append(tag)

        self.db.commit()
        self.db.refresh(item)
        return list(item.tags)

    def remove_tag(self, item_id: int, seller_id: int, tag_id: int) -> bool:
        item = self._owned_item(item_id, seller_id, "modify")

        tag = next((t for t in item.tags if t.id == tag_id), None)
        if tag is None:
            return False

        item.tags.remove(tag)
        self.db.commit()
        return True

    def find_or_create_tag(self, name: str, category: str) -> Tag:
        tag = self.db.query(Tag).filter(Tag.name == name).first()
        if tag is not None:
            return tag

        tag = Tag(name=name, category=category)
        self.db.add(tag)
        self.db.commit()
        self.db.refresh(tag)
        return tag

    def list_tags(self, category: Optional[str] = None, skip: int = 0, limit: Optional[int] = None) -> List[Tag]:
        query = self.db.query(Tag)
        if category:
            query = query.filter(Tag.category == category)

        return query.order_by(Tag.id).offset(skip).limit(limit or settings.ITEMS_PER_PAGE).all()
