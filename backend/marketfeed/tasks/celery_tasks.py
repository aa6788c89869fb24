"""Background task definitions"""

from .celery_config import celery_app

from ..models import User, UserRole
from ..services.feed import FeedService
from ..services.session import SessionService
from ..utils.cache import get_redis_client
from ..utils.database import SessionLocal
from ..utils.dates import utcnow
from ..utils.logging import get_logger
from ..utils.metrics import update_system_metrics

logger = get_logger(__name__)


def run_session_cleanup(db) -> int:
    return SessionService(db, get_redis_client()).cleanup_expired_sessions()


def run_feed_pregeneration(db, feed_service_factory=FeedService) -> dict:
    """
    Generate today's feed for every active buyer that does not have one yet

    One failing user does not stop the batch; the failure is logged and the
    next request of that user generates the feed on demand.
    """
    buyer_ids = [
        user_id
        for (user_id,) in db.query(User.id)
        .filter(User.role == UserRole.BUYER.value, User.is_active.is_(True))
        .order_by(User.id)
        .all()
    ]

    feed_service = feed_service_factory(db)
    generated = 0
    failed = 0
    for user_id in buyer_ids:
        try:
            if feed_service.ensure_todays_feed(user_id):
                generated += 1
        except Exception:
            db.rollback()
            failed += 1
            logger.error("Feed pregeneration failed", user_id=user_id, exc_info=True)

    return {"users": len(buyer_ids), "generated": generated, "failed": failed}


@celery_app.task(name="marketfeed.tasks.celery_tasks.cleanup_expired_sessions")
def cleanup_expired_sessions():
    """
    Delete sessions past their expiry

    Revoked sessions are kept until they expire so their revocation stays
    visible to the database check.
    """
    logger.info("Starting expired session cleanup")
    db = SessionLocal()

    try:
        deleted = run_session_cleanup(db)

        return {
            "status": "success",
            "timestamp": utcnow().isoformat(),
            "deleted": deleted
        }

    except Exception:
        logger.error("Error cleaning up sessions", exc_info=True)
        raise
    finally:
        db.close()


@celery_app.task(name="marketfeed.tasks.celery_tasks.pregenerate_daily_feeds")
def pregenerate_daily_feeds():
    """Warm today's feed partitions so the first request of the day is fast"""
    logger.info("Starting daily feed pregeneration")
    db = SessionLocal()

    try:
        result = run_feed_pregeneration(db)
        logger.info("Daily feed pregeneration completed", **result)

        return {
            "status": "success",
            "timestamp": utcnow().isoformat(),
            **result
        }

    finally:
        db.close()


@celery_app.task(name="marketfeed.tasks.celery_tasks.update_metrics_task")
def update_metrics_task():
    """
    Update Prometheus metrics

    Runs periodically to update system-wide gauges.
    """
    db = SessionLocal()

    try:
        update_system_metrics(db)

        return {
            "status": "success",
            "timestamp": utcnow().isoformat(),
            "message": "Metrics updated"
        }

    except Exception:
        logger.error("Error updating metrics", exc_info=True)
        raise
    finally:
        db.close()
