"""Rate limiting utilities"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from ..config import settings


def get_client_key(request: Request) -> str:
    """
    Rate limit key for unauthenticated endpoints

    Prefers the first X-Forwarded-For hop so clients behind the same proxy
    are not lumped together.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


# Login and registration are the brute-force targets
limiter = Limiter(
    key_func=get_client_key,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)

AUTH_RATE_LIMIT = settings.AUTH_RATE_LIMIT
