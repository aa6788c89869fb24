"""Daily feed generation and cursor"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import FeedItemMissingError
from ..models import DailyFeedEntry, Item, ItemImage, Tag
from ..utils.dates import start_of_today, utcnow
from ..utils.logging import get_logger
from ..utils.metrics import (
    feed_exhausted_total,
    feed_items_served_total,
    feeds_generated_total,
    track_feed_generation,
)
from .recommendation import RecommendationService

logger = get_logger(__name__)


@dataclass
class FeedItemDetail:
    """A feed entry joined with its item, images and tags"""

    entry_id: int
    position: int
    shown_at: Optional[datetime]
    item: Item
    images: List[ItemImage]
    tags: List[Tag]


class FeedService:
    """
    Per-user, per-day feed partitions

    A partition is generated once per (user, calendar day) and then consumed
    in position order. Generation is guarded by the
    (user_id, feed_date, position) unique constraint and, on PostgreSQL, by
    a per-user advisory lock.
    """

    def __init__(
        self,
        db: Session,
        recommender: Optional[RecommendationService] = None,
        feed_size: Optional[int] = None,
        today: Callable[[], date] = start_of_today,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.recommender = recommender or RecommendationService(db)
        self.feed_size = feed_size or settings.DAILY_FEED_SIZE
        self.today = today
        self.clock = clock

    def _partition(self, user_id: int, feed_date: date):
        return self.db.query(DailyFeedEntry).filter(
            DailyFeedEntry.user_id == user_id,
            DailyFeedEntry.feed_date == feed_date,
        )

    def has_feed(self, user_id: int, feed_date: Optional[date] = None) -> bool:
        feed_date = feed_date or self.today()
        return self.db.query(self._partition(user_id, feed_date).exists()).scalar()

    def _lock_user(self, user_id: int) -> None:
        """Serialize generation for one user until the transaction ends"""
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": user_id})

    def ensure_todays_feed(self, user_id: int) -> bool:
        """
        Generate today's feed if it does not exist yet

        Returns:
            True if this call generated the partition, False if it already existed
        """
        feed_date = self.today()
        if self.has_feed(user_id, feed_date):
            return False

        self._lock_user(user_id)
        if self.has_feed(user_id, feed_date):
            self.db.commit()
            return False

        return self._generate(user_id, feed_date)

    @track_feed_generation
    def _generate(self, user_id: int, feed_date: date) -> bool:
        items = self.recommender.generate_recommendations(user_id, self.feed_size)
        if not items:
            # Nothing to persist; the next request today tries again
            self.db.commit()
            return False

        entries = [
            DailyFeedEntry(user_id=user_id, item_id=item.id, feed_date=feed_date, position=index + 1)
            for index, item in enumerate(items)
        ]
        self.db.add_all(entries)

        try:
            self.db.commit()
        except IntegrityError:
            # Another request generated the same partition first
            self.db.rollback()
            logger.info("Feed generated concurrently, reusing it", user_id=user_id, feed_date=str(feed_date))
            return False

        feeds_generated_total.inc()
        logger.info("Daily feed generated", user_id=user_id, feed_date=str(feed_date), size=len(entries))
        return True

    def get_todays_feed(self, user_id: int) -> List[FeedItemDetail]:
        """Every entry of today's partition in position order, shown or not"""
        self.ensure_todays_feed(user_id)

        entries = (
            self._partition(user_id, self.today())
            .order_by(DailyFeedEntry.position)
            .all()
        )
        return [self._with_details(entry) for entry in entries]

    def get_next_unshown(self, user_id: int) -> Optional[FeedItemDetail]:
        """
        Deliver the lowest-position entry not yet shown and mark it shown

        Returns:
            The entry with item details, or None once every entry was shown
        """
        self.ensure_todays_feed(user_id)
        feed_date = self.today()

        while True:
            entry = (
                self._partition(user_id, feed_date)
                .filter(DailyFeedEntry.shown_at.is_(None))
                .order_by(DailyFeedEntry.position)
                .first()
            )
            if entry is None:
                self.db.commit()
                feed_exhausted_total.inc()
                return None

            # Conditional update: only one caller can flip shown_at
            claimed = (
                self.db.query(DailyFeedEntry)
                .filter(DailyFeedEntry.id == entry.id, DailyFeedEntry.shown_at.is_(None))
                .update({DailyFeedEntry.shown_at: self.clock()}, synchronize_session=False)
            )
            self.db.commit()

            if claimed == 1:
                break

            logger.debug("Feed entry claimed by another request", user_id=user_id, entry_id=entry.id)

        feed_items_served_total.inc()
        return self._with_details(entry)

    def _with_details(self, entry: DailyFeedEntry) -> FeedItemDetail:
        item = self.db.get(Item, entry.item_id)
        if item is None:
            logger.error("Feed entry references missing item", entry_id=entry.id, item_id=entry.item_id)
            raise FeedItemMissingError(entry.id, entry.item_id)

        return FeedItemDetail(
            entry_id=entry.id,
            position=entry.position,
            shown_at=entry.shown_at,
            item=item,
            images=list(item.images),
            tags=list(item.tags),
        )
