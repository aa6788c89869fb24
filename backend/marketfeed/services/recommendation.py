"""Tag-profile recommendation with tiered, randomized selection"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..models import Interaction, InteractionType, Item, item_tags
from ..utils.logging import get_logger
from ..utils.metrics import record_tier_selection

logger = get_logger(__name__)

T = TypeVar("T")

# Points each tag of an interacted item earns
INTERACTION_WEIGHTS: Dict[str, int] = {
    InteractionType.FAVORITE.value: 3,
    InteractionType.LIKE.value: 2,
    InteractionType.DISLIKE.value: -1,
}


class Tier(str, Enum):
    """Relevance buckets, in fill order"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    EXPLORATION = "exploration"


# Percentage of the feed each tier aims for
TIER_SHARES = (
    (Tier.HIGH, 60),
    (Tier.MEDIUM, 25),
    (Tier.LOW, 10),
    (Tier.EXPLORATION, 5),
)


def classify_score(score: int) -> Tier:
    """Map an item score to its relevance tier"""
    if score >= 6:
        return Tier.HIGH
    if score >= 3:
        return Tier.MEDIUM
    if score >= 1:
        return Tier.LOW
    return Tier.EXPLORATION


@dataclass(frozen=True)
class ScoredItem(Generic[T]):
    item: T
    score: int

    @property
    def tier(self) -> Tier:
        return classify_score(self.score)


def accumulate_profile(rows: Iterable[Sequence[Any]]) -> Dict[int, int]:
    """
    Sum interaction weights per tag

    Args:
        rows: (interaction_type, tag_id) pairs, one per tag of each interacted item
    """
    profile: Dict[int, int] = {}
    for interaction_type, tag_id in rows:
        weight = INTERACTION_WEIGHTS.get(interaction_type, 0)
        profile[tag_id] = profile.get(tag_id, 0) + weight
    return profile


def score_item(item: Any, profile: Dict[int, int]) -> int:
    """
    Score an item against a preference profile

    The item's tags must be loaded; tags missing from the profile count 0.
    """
    return sum(profile.get(tag.id, 0) for tag in item.tags)


def tier_targets(total: int) -> Dict[Tier, int]:
    """Floor of each tier's share; the rounding remainder goes to exploration"""
    targets = {tier: total * share // 100 for tier, share in TIER_SHARES}
    targets[Tier.EXPLORATION] += total - sum(targets.values())
    return targets


class TieredSelector:
    """
    Draws a feed-sized sample from scored items

    Each tier is shuffled and cut to its target; a tier that cannot meet its
    target hands the shortfall to the next one (high -> medium -> low ->
    exploration). Anything still missing is back-filled from leftovers so
    the result always holds min(count, available) items, then the whole
    selection is shuffled again to hide tier boundaries.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def shuffled(self, values: Sequence[T]) -> List[T]:
        result = list(values)
        self.rng.shuffle(result)
        return result

    def group_by_tier(self, scored: Iterable[ScoredItem]) -> Dict[Tier, List[Any]]:
        tiers: Dict[Tier, List[Any]] = {tier: [] for tier, _ in TIER_SHARES}
        for scored_item in scored:
            tiers[scored_item.tier].append(scored_item.item)
        return tiers

    def select(self, scored: Sequence[ScoredItem], count: int) -> List[Any]:
        if count <= 0 or not scored:
            return []

        tiers = self.group_by_tier(scored)
        targets = tier_targets(count)

        selected: List[Any] = []
        leftovers: List[List[Any]] = []
        shortfall = 0

        for tier, _ in TIER_SHARES:
            pool = self.shuffled(tiers[tier])
            wanted = targets[tier] + shortfall
            taken = pool[:wanted]

            selected.extend(taken)
            leftovers.append(pool[len(taken):])
            shortfall = wanted - len(taken)
            record_tier_selection(tier.value, len(taken))

        for rest in leftovers:
            missing = count - len(selected)
            if missing <= 0:
                break
            selected.extend(rest[:missing])

        return self.shuffled(selected[:count])


class RecommendationService:
    """
    Builds a personalized item list for a user

    1. Preference profile: every tag of every interacted item collects
       favorite +3, like +2, dislike -1.
    2. Candidates: active items the user has never interacted with.
    3. Score: sum of profile values over the candidate's tags.
    4. Select: tiered, randomized draw (see TieredSelector).
    """

    def __init__(
        self,
        db: Session,
        rng: Optional[random.Random] = None,
        candidate_limit: Optional[int] = None,
    ):
        self.db = db
        self.selector = TieredSelector(rng)
        self.candidate_limit = candidate_limit or settings.CANDIDATE_POOL_LIMIT

    def build_preference_profile(self, user_id: int) -> Dict[int, int]:
        """Signed tag -> score map over the user's whole interaction history"""
        rows = (
            self.db.query(Interaction.interaction_type, item_tags.c.tag_id)
            .join(item_tags, item_tags.c.item_id == Interaction.item_id)
            .filter(Interaction.user_id == user_id)
            .all()
        )
        return accumulate_profile(rows)

    def get_candidate_items(self, user_id: int) -> List[Item]:
        """Active items the user has not interacted with, tags preloaded"""
        interacted = select(Interaction.item_id).where(Interaction.user_id == user_id)
        return (
            self.db.query(Item)
            .options(selectinload(Item.tags))
            .filter(Item.is_active.is_(True), Item.id.notin_(interacted))
            .order_by(Item.id)
            .limit(self.candidate_limit)
            .all()
        )

    def score_items(self, items: Iterable[Item], profile: Dict[int, int]) -> List[ScoredItem]:
        return [ScoredItem(item=item, score=score_item(item, profile)) for item in items]

    def generate_recommendations(self, user_id: int, count: Optional[int] = None) -> List[Item]:
        """Ordered (already shuffled) items for a new feed"""
        count = count or settings.DAILY_FEED_SIZE

        profile = self.build_preference_profile(user_id)
        candidates = self.get_candidate_items(user_id)
        if not candidates:
            logger.info("No candidate items for feed", user_id=user_id)
            return []

        scored = self.score_items(candidates, profile)
        selected = self.selector.select(scored, count)

        logger.debug(
            "Recommendations selected",
            user_id=user_id,
            profile_tags=len(profile),
            candidates=len(candidates),
            selected=len(selected),
        )
        return selected
