"""Session lifecycle backed by the database and a Redis revocation cache"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from redis import Redis, RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..models import UserSession
from ..utils.auth import generate_jti
from ..utils.dates import seconds_until, utcnow
from ..utils.logging import get_logger
from ..utils.metrics import (
    increment_cache_error,
    increment_cache_hit,
    increment_cache_miss,
    record_session_revoked,
    record_session_validation,
    sessions_created_total,
)

logger = get_logger(__name__)

BLACKLIST_PREFIX = "blacklist:"


def blacklist_key(jti: str) -> str:
    return f"{BLACKLIST_PREFIX}{jti}"


@dataclass
class SessionMetadata:
    """Session details safe to show to the session owner"""

    id: int
    device_id: Optional[str]
    ip_address: Optional[str]
    user_agent: Optional[str]
    issued_at: datetime
    expires_at: datetime
    last_activity_at: datetime
    is_current: bool


class SessionService:
    """
    Server-side session tracking for issued tokens

    The database is the source of truth. Redis holds ``blacklist:{jti}`` keys
    for revoked sessions, each expiring when the session itself would, so
    the per-request validity check can usually stop at a single EXISTS.
    Redis failures only cost speed: every check falls back to the database.
    """

    def __init__(
        self,
        db: Session,
        redis_client: Optional[Redis],
        max_concurrent: Optional[int] = None,
        strict_ip_check: Optional[bool] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.redis = redis_client
        self.max_concurrent = max_concurrent if max_concurrent is not None else settings.SESSION_MAX_CONCURRENT
        self.strict_ip_check = (
            strict_ip_check if strict_ip_check is not None else settings.SESSION_STRICT_IP_CHECK
        )
        self.clock = clock

    @staticmethod
    def generate_jti() -> str:
        return generate_jti()

    # Queries

    def get_session(self, jti: str) -> Optional[UserSession]:
        return self.db.query(UserSession).filter(UserSession.jti == jti).first()

    def _active_query(self, user_id: int):
        return self.db.query(UserSession).filter(
            UserSession.user_id == user_id,
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > self.clock(),
        )

    def find_active_sessions(self, user_id: int) -> List[UserSession]:
        """Active sessions, least recently active first"""
        return (
            self._active_query(user_id)
            .order_by(UserSession.last_activity_at, UserSession.id)
            .all()
        )

    def get_user_sessions(self, user_id: int, current_jti: Optional[str] = None) -> List[SessionMetadata]:
        return [
            SessionMetadata(
                id=session.id,
                device_id=session.device_id,
                ip_address=session.ip_address,
                user_agent=session.user_agent,
                issued_at=session.issued_at,
                expires_at=session.expires_at,
                last_activity_at=session.last_activity_at,
                is_current=session.jti == current_jti,
            )
            for session in self.find_active_sessions(user_id)
        ]

    # Lifecycle

    def create_session(
        self,
        user_id: int,
        jti: str,
        ttl_seconds: int,
        device_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserSession:
        """
        Record a new session, evicting the least recently active one if the
        user is at the concurrency ceiling
        """
        active = self.find_active_sessions(user_id)
        if self.max_concurrent > 0 and len(active) >= self.max_concurrent:
            oldest = active[0]
            logger.info(
                "Concurrent session limit reached, evicting oldest",
                user_id=user_id,
                evicted_session_id=oldest.id,
                limit=self.max_concurrent,
            )
            self._revoke([oldest], reason="evicted")

        now = self.clock()
        session = UserSession(
            user_id=user_id,
            jti=jti,
            device_id=device_id,
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
            issued_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
            last_activity_at=now,
            is_revoked=False,
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        sessions_created_total.inc()
        return session

    def is_session_valid(self, jti: str) -> bool:
        """
        True only for an existing, unrevoked, unexpired session

        Checks the revocation cache first, then the database.
        """
        if self._is_blacklisted(jti):
            record_session_validation(False)
            return False

        session = self.get_session(jti)
        valid = (
            session is not None
            and not session.is_revoked
            and session.expires_at > self.clock()
        )
        record_session_validation(valid)
        return valid

    def update_activity(self, jti: str) -> None:
        """Refresh last_activity_at; failures are logged, never raised"""
        try:
            self.db.query(UserSession).filter(UserSession.jti == jti).update(
                {UserSession.last_activity_at: self.clock()}, synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Failed to update session activity", error=str(e))

    def revoke_session(self, jti: str) -> None:
        """Revoke one session; unknown or already revoked sessions are ignored"""
        session = self.get_session(jti)
        if session is None or session.is_revoked:
            return

        self._revoke([session], reason="logout")

    def revoke_all_for_user(self, user_id: int) -> int:
        """Revoke every active session of the user"""
        sessions = self.find_active_sessions(user_id)
        return self._revoke(sessions, reason="logout_all")

    def revoke_all_for_user_except(self, user_id: int, keep_jti: str) -> int:
        """Revoke every active session of the user other than keep_jti"""
        sessions = [s for s in self.find_active_sessions(user_id) if s.jti != keep_jti]
        return self._revoke(sessions, reason="logout_others")

    def verify_ip_address(self, jti: str, ip_address: Optional[str]) -> bool:
        """Exact IP match against the session, only when strict mode is on"""
        if not self.strict_ip_check:
            return True

        session = self.get_session(jti)
        if session is None:
            return False

        return session.ip_address == ip_address

    def cleanup_expired_sessions(self) -> int:
        """Delete sessions whose expiry has passed; returns the number deleted"""
        deleted = (
            self.db.query(UserSession)
            .filter(UserSession.expires_at < self.clock())
            .delete(synchronize_session=False)
        )
        self.db.commit()

        logger.info("Expired sessions cleaned up", deleted=deleted)
        return deleted

    # Internals

    def _revoke(self, sessions: List[UserSession], reason: str) -> int:
        if not sessions:
            return 0

        jtis = [session.jti for session in sessions]
        expiries = {session.jti: session.expires_at for session in sessions}

        # One statement; sessions not listed are never touched
        self.db.query(UserSession).filter(UserSession.jti.in_(jtis)).update(
            {UserSession.is_revoked: True}, synchronize_session=False
        )
        self.db.commit()

        self._blacklist(expiries)
        record_session_revoked(reason, len(jtis))
        logger.info("Sessions revoked", reason=reason, count=len(jtis))
        return len(jtis)

    def _blacklist(self, expiries) -> None:
        """Best-effort: a missed key only means the database check decides"""
        if self.redis is None:
            return

        now = self.clock()
        try:
            pipeline = self.redis.pipeline()
            queued = 0
            for jti, expires_at in expiries.items():
                ttl = seconds_until(expires_at, now)
                if ttl > 0:
                    pipeline.setex(blacklist_key(jti), ttl, "1")
                    queued += 1
            if queued:
                pipeline.execute()
        except RedisError as e:
            increment_cache_error()
            logger.warning("Failed to write revocation cache", error=str(e), count=len(expiries))

    def _is_blacklisted(self, jti: str) -> bool:
        if self.redis is None:
            return False

        try:
            hit = bool(self.redis.exists(blacklist_key(jti)))
        except RedisError as e:
            increment_cache_error()
            logger.warning("Revocation cache unavailable, using database", error=str(e))
            return False

        if hit:
            increment_cache_hit()
        else:
            increment_cache_miss()
        return hit
