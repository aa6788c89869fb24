"""Tests for daily feed generation and the feed cursor"""

import random
from datetime import date, timedelta

import pytest
from sqlalchemy import text

from marketfeed.exceptions import FeedItemMissingError
from marketfeed.models import DailyFeedEntry, Interaction, InteractionType, Item
from marketfeed.services.feed import FeedService
from marketfeed.services.recommendation import RecommendationService
from marketfeed.tasks.celery_tasks import run_feed_pregeneration

from conftest import make_item, make_tag, make_user

TODAY = date(2024, 3, 1)


class Today:
    def __init__(self, day=TODAY):
        self.day = day

    def __call__(self):
        return self.day


@pytest.fixture
def today():
    return Today()


@pytest.fixture
def make_feed_service(db, clock, today):
    def factory(feed_size=5, seed=11):
        recommender = RecommendationService(db, rng=random.Random(seed))
        return FeedService(db, recommender=recommender, feed_size=feed_size, today=today, clock=clock)
    return factory


@pytest.fixture
def catalog(db, seller):
    tags = [make_tag(db, name) for name in ("casual", "formal", "sport")]
    return [make_item(db, seller, [tags[i % 3]], title=f"item{i}") for i in range(8)]


def partition(db, user_id, feed_date=TODAY):
    return (
        db.query(DailyFeedEntry)
        .filter(DailyFeedEntry.user_id == user_id, DailyFeedEntry.feed_date == feed_date)
        .order_by(DailyFeedEntry.position)
        .all()
    )


def test_feed_is_generated_once_per_day(db, buyer, catalog, make_feed_service):
    service = make_feed_service()

    assert service.ensure_todays_feed(buyer.id) is True
    assert service.ensure_todays_feed(buyer.id) is False

    entries = partition(db, buyer.id)
    assert [entry.position for entry in entries] == [1, 2, 3, 4, 5]
    assert len({entry.item_id for entry in entries}) == 5


def test_feed_is_stable_within_the_day(db, buyer, catalog, make_feed_service):
    first = make_feed_service(seed=1).get_todays_feed(buyer.id)

    # New interactions and a different random source do not rebuild the feed
    db.add(Interaction(user_id=buyer.id, item_id=catalog[0].id, interaction_type=InteractionType.LIKE.value))
    db.commit()
    second = make_feed_service(seed=99).get_todays_feed(buyer.id)

    assert [(d.entry_id, d.position, d.item.id) for d in first] == [
        (d.entry_id, d.position, d.item.id) for d in second
    ]


def test_new_day_gets_new_partition(db, buyer, catalog, make_feed_service, today):
    service = make_feed_service()
    service.ensure_todays_feed(buyer.id)

    today.day = TODAY + timedelta(days=1)
    assert service.ensure_todays_feed(buyer.id) is True

    assert len(partition(db, buyer.id, TODAY)) == 5
    assert len(partition(db, buyer.id, today.day)) == 5


def test_feed_excludes_interacted_items(db, buyer, catalog, make_feed_service):
    for item in catalog[:5]:
        db.add(Interaction(user_id=buyer.id, item_id=item.id, interaction_type=InteractionType.DISLIKE.value))
    db.commit()

    feed = make_feed_service(feed_size=10).get_todays_feed(buyer.id)

    assert {d.item.id for d in feed} == {item.id for item in catalog[5:]}


def test_feed_smaller_than_requested_when_supply_is_short(db, buyer, seller, make_feed_service):
    make_item(db, seller, title="only-one")
    make_item(db, seller, title="only-two")

    feed = make_feed_service(feed_size=20).get_todays_feed(buyer.id)

    assert [d.position for d in feed] == [1, 2]


def test_empty_feed_is_retried_later_the_same_day(db, buyer, seller, make_feed_service):
    service = make_feed_service()

    assert service.ensure_todays_feed(buyer.id) is False
    assert service.get_todays_feed(buyer.id) == []
    assert service.get_next_unshown(buyer.id) is None

    make_item(db, seller, title="late-arrival")

    assert service.ensure_todays_feed(buyer.id) is True
    assert len(service.get_todays_feed(buyer.id)) == 1


def test_cursor_delivers_in_position_order_until_exhausted(db, buyer, catalog, make_feed_service, clock):
    service = make_feed_service(feed_size=3)

    delivered = []
    for _ in range(3):
        detail = service.get_next_unshown(buyer.id)
        assert detail is not None
        delivered.append(detail)
        clock.advance(seconds=1)

    assert [d.position for d in delivered] == [1, 2, 3]
    assert len({d.entry_id for d in delivered}) == 3
    assert all(d.shown_at is not None for d in delivered)

    assert service.get_next_unshown(buyer.id) is None
    assert service.get_next_unshown(buyer.id) is None


def test_cursor_skips_entry_claimed_by_concurrent_request(db, session_factory, buyer, catalog, clock, today):
    buyer_id = buyer.id
    first_session = session_factory()
    rival_session = session_factory()
    rival = FeedService(rival_session, feed_size=4, today=today, clock=clock)
    rival.ensure_todays_feed(buyer_id)
    rival_claims = []

    def racing_clock():
        # Runs after this request read position 1, before its conditional update
        if not rival_claims:
            rival_claims.append(rival.get_next_unshown(buyer_id))
        return clock()

    service = FeedService(first_session, feed_size=4, today=today, clock=racing_clock)
    try:
        detail = service.get_next_unshown(buyer_id)
    finally:
        first_session.close()
        rival_session.close()

    assert rival_claims[0].position == 1
    assert detail.position == 2
    assert [entry.shown_at is not None for entry in partition(db, buyer_id)] == [True, True, False, False]


def test_concurrent_generation_keeps_one_partition(db, session_factory, buyer, catalog, clock, today):
    buyer_id = buyer.id
    winner_session = session_factory()
    loser_session = session_factory()
    winner = FeedService(winner_session, feed_size=4, today=today, clock=clock)
    loser = FeedService(loser_session, feed_size=4, today=today, clock=clock)

    # Both requests already saw no partition and go straight to generation
    try:
        assert winner._generate(buyer_id, TODAY) is True
        assert loser._generate(buyer_id, TODAY) is False
        assert [d.position for d in loser.get_todays_feed(buyer_id)] == [1, 2, 3, 4]
    finally:
        winner_session.close()
        loser_session.close()

    entries = partition(db, buyer_id)
    assert [entry.position for entry in entries] == [1, 2, 3, 4]


def test_cursor_does_not_change_the_feed(db, buyer, catalog, make_feed_service):
    service = make_feed_service(feed_size=4)
    before = [(d.entry_id, d.item.id) for d in service.get_todays_feed(buyer.id)]

    shown = service.get_next_unshown(buyer.id)
    after = service.get_todays_feed(buyer.id)

    assert [(d.entry_id, d.item.id) for d in after] == before
    assert after[0].entry_id == shown.entry_id
    assert after[0].shown_at is not None
    assert all(d.shown_at is None for d in after[1:])


def test_shown_at_is_set_once(db, buyer, catalog, make_feed_service, clock):
    service = make_feed_service(feed_size=2)
    first = service.get_next_unshown(buyer.id)
    first_shown_at = first.shown_at

    clock.advance(hours=1)
    service.get_next_unshown(buyer.id)

    db.expire_all()
    entry = db.get(DailyFeedEntry, first.entry_id)
    assert entry.shown_at == first_shown_at


def test_feed_item_details_include_images_and_tags(db, buyer, seller, make_feed_service):
    tag = make_tag(db, "vintage")
    make_item(db, seller, [tag], title="lamp")

    detail = make_feed_service().get_next_unshown(buyer.id)

    assert detail.item.title == "lamp"
    assert [image.image_url for image in detail.images] == ["https://img.example.com/lamp.jpg"]
    assert [t.name for t in detail.tags] == ["vintage"]


def test_missing_item_raises(db, buyer, catalog, make_feed_service):
    buyer_id = buyer.id
    service = make_feed_service(feed_size=1)
    service.ensure_todays_feed(buyer_id)
    item_id = partition(db, buyer_id)[0].item_id

    # Bypass ORM cascades to leave a dangling reference behind
    db.execute(text("DELETE FROM items WHERE id = :id"), {"id": item_id})
    db.commit()
    db.expunge_all()

    with pytest.raises(FeedItemMissingError) as exc_info:
        service.get_next_unshown(buyer_id)

    assert exc_info.value.details["item_id"] == item_id


def test_deleting_item_removes_feed_entries(db, buyer, catalog, make_feed_service):
    service = make_feed_service(feed_size=8)
    service.ensure_todays_feed(buyer.id)
    victim_id = catalog[0].id

    db.delete(db.get(Item, victim_id))
    db.commit()

    assert all(entry.item_id != victim_id for entry in partition(db, buyer.id))


def test_pregeneration_covers_active_buyers_only(db, buyer, seller, catalog, clock, today):
    make_user(db, "inactive@example.com", is_active=False)
    other = make_user(db, "other@example.com")

    def factory(session):
        return FeedService(session, feed_size=3, today=today, clock=clock)

    result = run_feed_pregeneration(db, feed_service_factory=factory)

    assert result == {"users": 2, "generated": 2, "failed": 0}
    assert len(partition(db, buyer.id)) == 3
    assert len(partition(db, other.id)) == 3
    assert partition(db, seller.id) == []

    again = run_feed_pregeneration(db, feed_service_factory=factory)
    assert again["generated"] == 0
