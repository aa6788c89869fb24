"""Database engine, session factory and request-scoped sessions"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from ..config import settings
from ..models.base import Base


def create_db_engine(url: str, **options) -> Engine:
    """
    Build an engine for ``url``

    Pool sizing only applies to PostgreSQL; SQLite connections are allowed
    to cross threads so the test client and background jobs can share them.
    Keyword options override the defaults.
    """
    backend = make_url(url).get_backend_name()

    defaults = {}
    if backend == "postgresql":
        defaults.update(
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
    elif backend == "sqlite":
        defaults["connect_args"] = {"check_same_thread": False}

    defaults.update(options)
    return create_engine(url, **defaults)


engine = create_db_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a session for one request and close it afterwards"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None) -> None:
    """Create all tables registered on the model metadata"""
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
