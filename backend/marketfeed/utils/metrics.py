"""Prometheus metrics configuration"""

from prometheus_client import Counter, Histogram, Gauge, Info
from prometheus_fastapi_instrumentator import Instrumentator
from typing import Callable
import time
from functools import wraps

# Application info
app_info = Info('marketfeed', 'Marketplace Feed Information')
app_info.info({
    'version': '1.0.0',
    'service': 'marketfeed-backend'
})

# Feed metrics
feeds_generated_total = Counter(
    'feeds_generated_total',
    'Daily feed partitions generated'
)

feed_generation_duration_seconds = Histogram(
    'feed_generation_duration_seconds',
    'Time taken to generate a daily feed'
)

feed_items_served_total = Counter(
    'feed_items_served_total',
    'Feed entries delivered through the cursor'
)

feed_exhausted_total = Counter(
    'feed_exhausted_total',
    'Cursor calls that found no unshown entry'
)

feed_tier_selected_total = Counter(
    'feed_tier_selected_total',
    'Items selected per relevance tier',
    ['tier']
)

# Interaction metrics
interactions_recorded_total = Counter(
    'interactions_recorded_total',
    'Interactions created or overwritten',
    ['interaction_type']
)

# Session metrics
sessions_created_total = Counter(
    'sessions_created_total',
    'Sessions created at token issuance'
)

sessions_revoked_total = Counter(
    'sessions_revoked_total',
    'Sessions revoked',
    ['reason']
)

session_validations_total = Counter(
    'session_validations_total',
    'Session validity checks',
    ['result']
)

auth_failures_total = Counter(
    'auth_failures_total',
    'Rejected authentication attempts',
    ['reason']
)

# Cache metrics
cache_hits_total = Counter(
    'cache_hits_total',
    'Total cache hits',
    ['cache_type']
)

cache_misses_total = Counter(
    'cache_misses_total',
    'Total cache misses',
    ['cache_type']
)

cache_errors_total = Counter(
    'cache_errors_total',
    'Cache operations that failed and fell back',
    ['cache_type']
)

# System gauges
active_users_gauge = Gauge(
    'active_users',
    'Number of active users'
)

active_items_gauge = Gauge(
    'active_items',
    'Number of active items'
)

active_sessions_gauge = Gauge(
    'active_sessions',
    'Number of unrevoked, unexpired sessions'
)


def setup_metrics(app):
    """
    Setup Prometheus metrics for FastAPI app

    Args:
        app: FastAPI application instance
    """
    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics"],
        env_var_name="ENABLE_METRICS",
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True
    )

    instrumentator.instrument(app).expose(app, endpoint="/metrics")

    return instrumentator


def track_feed_generation(func: Callable):
    """Decorator recording feed generation time"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            return func(*args, **kwargs)
        finally:
            feed_generation_duration_seconds.observe(time.time() - start_time)

    return wrapper


def increment_cache_hit(cache_type: str = "blacklist"):
    cache_hits_total.labels(cache_type=cache_type).inc()


def increment_cache_miss(cache_type: str = "blacklist"):
    cache_misses_total.labels(cache_type=cache_type).inc()


def increment_cache_error(cache_type: str = "blacklist"):
    cache_errors_total.labels(cache_type=cache_type).inc()


def record_tier_selection(tier: str, count: int):
    if count:
        feed_tier_selected_total.labels(tier=tier).inc(count)


def record_interaction(interaction_type: str):
    interactions_recorded_total.labels(interaction_type=interaction_type).inc()


def record_session_revoked(reason: str, count: int = 1):
    if count:
        sessions_revoked_total.labels(reason=reason).inc(count)


def record_session_validation(valid: bool):
    session_validations_total.labels(result="valid" if valid else "invalid").inc()


def record_auth_failure(reason: str):
    auth_failures_total.labels(reason=reason).inc()


def update_system_metrics(db):
    """
    Update system-wide gauges (call periodically)

    Args:
        db: Database session
    """
    from ..models import User, Item, UserSession
    from .dates import utcnow

    active_users_gauge.set(db.query(User).filter(User.is_active.is_(True)).count())
    active_items_gauge.set(db.query(Item).filter(Item.is_active.is_(True)).count())
    active_sessions_gauge.set(
        db.query(UserSession)
        .filter(UserSession.is_revoked.is_(False), UserSession.expires_at > utcnow())
        .count()
    )
