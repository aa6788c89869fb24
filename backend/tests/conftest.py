"""Shared fixtures: in-memory database, Redis test doubles and API client"""

from datetime import datetime, timedelta

import pytest
import redis
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketfeed.main import app
from marketfeed.models import Item, ItemImage, Tag, User, UserRole
from marketfeed.models.base import Base
from marketfeed.utils.auth import get_password_hash
from marketfeed.utils.cache import get_redis
from marketfeed.utils.database import create_db_engine, get_db, init_db
from marketfeed.utils.rate_limit import limiter

DEFAULT_PASSWORD = "secretpw1"


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.commands = []

    def setex(self, key, ttl, value):
        self.commands.append((key, ttl, value))
        return self

    def execute(self):
        results = [self.client.setex(key, ttl, value) for key, ttl, value in self.commands]
        self.commands = []
        return results


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the app uses"""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def ping(self):
        return True

    def exists(self, *keys):
        return sum(1 for key in keys if key in self.store)

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = int(ttl)
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed

    def pipeline(self):
        return FakePipeline(self)

    def flushall(self):
        self.store.clear()
        self.ttls.clear()
        return True


class BrokenRedis:
    """Every command fails as if the server were unreachable"""

    def _fail(self, *args, **kwargs):
        raise redis.ConnectionError("Connection refused")

    ping = exists = get = setex = delete = flushall = _fail

    def pipeline(self):
        return self

    def execute(self):
        self._fail()


class FrozenClock:
    """Controllable replacement for utcnow"""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Database session used directly by a test"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def client(session_factory, redis_client):
    """API client wired to the in-memory database and fake Redis"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis_client
    limiter.enabled = False

    yield TestClient(app)

    app.dependency_overrides.clear()
    limiter.enabled = True


# Data helpers

def make_user(db, email, role=UserRole.BUYER, password=DEFAULT_PASSWORD, is_active=True):
    user = User(
        email=email,
        password_hash=get_password_hash(password),
        name=email.split("@")[0],
        role=role.value,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_tag(db, name, category="style"):
    tag = Tag(name=name, category=category)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


def make_item(db, seller, tags=(), title="Item", is_active=True, price_amount=1000):
    item = Item(
        seller_id=seller.id,
        title=title,
        price_amount=price_amount,
        price_currency="USD",
        is_active=is_active,
    )
    item.images = [ItemImage(image_url=f"https://img.example.com/{title}.jpg")]
    item.tags = list(tags)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def login(client, email, password=DEFAULT_PASSWORD, headers=None):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
        headers=headers or {},
    )
    assert response.status_code == 200, response.text
    return response.json()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seller(db):
    return make_user(db, "seller@example.com", role=UserRole.SELLER)


@pytest.fixture
def buyer(db):
    return make_user(db, "buyer@example.com")


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role=UserRole.ADMIN)
