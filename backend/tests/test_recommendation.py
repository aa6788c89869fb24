"""Tests for preference profiles, scoring and tiered selection"""

import random
from types import SimpleNamespace

import pytest

from marketfeed.models import Interaction, InteractionType
from marketfeed.services.recommendation import (
    RecommendationService,
    ScoredItem,
    Tier,
    TieredSelector,
    accumulate_profile,
    classify_score,
    score_item,
    tier_targets,
)

from conftest import make_item, make_tag


def fake_item(name, *tag_ids):
    return SimpleNamespace(name=name, tags=[SimpleNamespace(id=tag_id) for tag_id in tag_ids])


def scored(prefix, count, score):
    return [ScoredItem(item=f"{prefix}{i}", score=score) for i in range(count)]


def test_profile_weights():
    rows = [
        ("favorite", 1), ("favorite", 2),
        ("like", 1), ("like", 3),
        ("dislike", 3),
    ]

    assert accumulate_profile(rows) == {1: 5, 2: 3, 3: 1}


def test_profile_is_deterministic():
    rows = [("like", 7), ("dislike", 8), ("favorite", 7)]

    assert accumulate_profile(rows) == accumulate_profile(list(reversed(rows)))


def test_score_item_sums_profile_over_tags():
    profile = {"A": 3, "C": 2}
    item = SimpleNamespace(tags=[SimpleNamespace(id="A"), SimpleNamespace(id="B")])

    assert score_item(item, profile) == 3
    # Scoring does not touch the profile
    assert profile == {"A": 3, "C": 2}


def test_score_item_without_tags():
    assert score_item(fake_item("bare"), {1: 10}) == 0


@pytest.mark.parametrize("score,tier", [
    (6, Tier.HIGH),
    (5, Tier.MEDIUM),
    (3, Tier.MEDIUM),
    (2, Tier.LOW),
    (1, Tier.LOW),
    (0, Tier.EXPLORATION),
    (-1, Tier.EXPLORATION),
])
def test_tier_thresholds(score, tier):
    assert classify_score(score) == tier


def test_tier_targets_for_default_feed():
    assert tier_targets(20) == {
        Tier.HIGH: 12,
        Tier.MEDIUM: 5,
        Tier.LOW: 2,
        Tier.EXPLORATION: 1,
    }


def test_tier_targets_remainder_goes_to_exploration():
    targets = tier_targets(7)

    assert targets[Tier.HIGH] == 4
    assert targets[Tier.MEDIUM] == 1
    assert targets[Tier.LOW] == 0
    assert targets[Tier.EXPLORATION] == 2
    assert sum(targets.values()) == 7


@pytest.mark.parametrize("high,medium,low,exploration,count", [
    (30, 30, 30, 30, 20),
    (0, 0, 0, 50, 20),
    (3, 0, 0, 50, 20),
    (50, 0, 0, 0, 20),
    (2, 2, 2, 2, 20),
    (0, 0, 0, 0, 20),
    (5, 5, 5, 5, 1),
])
def test_selector_completeness(high, medium, low, exploration, count):
    pool = (
        scored("h", high, 8)
        + scored("m", medium, 4)
        + scored("l", low, 1)
        + scored("e", exploration, 0)
    )
    selector = TieredSelector(random.Random(7))

    selected = selector.select(pool, count)

    assert len(selected) == min(count, len(pool))
    assert len(set(selected)) == len(selected)
    assert set(selected) <= {s.item for s in pool}


def test_selector_shortfall_rolls_forward():
    pool = scored("h", 3, 9) + scored("e", 50, 0)
    selector = TieredSelector(random.Random(1))

    selected = selector.select(pool, 20)

    assert len(selected) == 20
    # Every high item is used before exploration fills the rest
    assert {"h0", "h1", "h2"} <= set(selected)


def test_selector_respects_tier_targets_when_supply_is_ample():
    pool = scored("h", 40, 7) + scored("m", 40, 4) + scored("l", 40, 2) + scored("e", 40, -1)
    selector = TieredSelector(random.Random(3))

    selected = selector.select(pool, 20)

    prefixes = [item[0] for item in selected]
    assert prefixes.count("h") == 12
    assert prefixes.count("m") == 5
    assert prefixes.count("l") == 2
    assert prefixes.count("e") == 1


def test_selector_with_seeded_rng_is_reproducible():
    pool = scored("h", 20, 7) + scored("e", 20, 0)

    first = TieredSelector(random.Random(42)).select(pool, 10)
    second = TieredSelector(random.Random(42)).select(pool, 10)

    assert first == second


def test_selector_empty_inputs():
    selector = TieredSelector(random.Random(0))

    assert selector.select([], 20) == []
    assert selector.select(scored("h", 3, 7), 0) == []


class TestRecommendationService:
    """Profile and candidate queries against the database"""

    def test_build_preference_profile(self, db, seller, buyer):
        size_m = make_tag(db, "M", "size")
        casual = make_tag(db, "casual", "style")
        blue = make_tag(db, "blue", "color")

        favorite = make_item(db, seller, [size_m, casual], title="fav")
        liked = make_item(db, seller, [size_m, blue], title="liked")
        disliked = make_item(db, seller, [blue], title="disliked")

        db.add_all([
            Interaction(user_id=buyer.id, item_id=favorite.id, interaction_type=InteractionType.FAVORITE.value),
            Interaction(user_id=buyer.id, item_id=liked.id, interaction_type=InteractionType.LIKE.value),
            Interaction(user_id=buyer.id, item_id=disliked.id, interaction_type=InteractionType.DISLIKE.value),
        ])
        db.commit()

        profile = RecommendationService(db).build_preference_profile(buyer.id)

        assert profile == {size_m.id: 5, casual.id: 3, blue.id: 1}

    def test_profile_empty_without_interactions(self, db, buyer):
        assert RecommendationService(db).build_preference_profile(buyer.id) == {}

    def test_candidates_exclude_interacted_and_inactive(self, db, seller, buyer):
        seen = make_item(db, seller, title="seen")
        hidden = make_item(db, seller, title="hidden", is_active=False)
        fresh = make_item(db, seller, title="fresh")

        db.add(Interaction(user_id=buyer.id, item_id=seen.id, interaction_type=InteractionType.DISLIKE.value))
        db.commit()

        candidates = RecommendationService(db).get_candidate_items(buyer.id)

        ids = [item.id for item in candidates]
        assert fresh.id in ids
        assert seen.id not in ids
        assert hidden.id not in ids

    def test_generate_recommendations_is_bounded_by_supply(self, db, seller, buyer):
        for i in range(4):
            make_item(db, seller, title=f"item{i}")

        service = RecommendationService(db, rng=random.Random(5))
        items = service.generate_recommendations(buyer.id, count=20)

        assert len(items) == 4
        assert len({item.id for item in items}) == 4

    def test_generate_recommendations_without_candidates(self, db, buyer):
        assert RecommendationService(db).generate_recommendations(buyer.id, count=20) == []
