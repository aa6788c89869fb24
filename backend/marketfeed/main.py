"""
Marketplace Feed - Main FastAPI Application

Backend for a marketplace where buyers receive one personalized feed per day:
- Tag-based preference profiles from likes, dislikes and favorites
- Tiered daily feed (high / medium / low affinity plus exploration)
- Server-side sessions with revocation (JWT access/refresh tokens)
- Seller catalog management (items, images, tags)
- Rate Limiting
- Structured Logging
- Prometheus Metrics
- Background Jobs with Celery
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis import Redis
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .api import api_router
from .config import settings
from .exceptions import (
    AuthenticationError,
    ConflictError,
    DomainRuleViolation,
    FeedItemMissingError,
    InvalidCredentialsError,
    NotFoundError,
    PermissionDeniedError,
    RoleRequiredError,
)
from .utils.cache import get_redis, get_redis_client, redis_health_check
from .utils.database import get_db, init_db
from .utils.logging import clear_request_context, configure_uvicorn_logging, get_logger, setup_logging
from .utils.metrics import setup_metrics
from .utils.rate_limit import limiter

# Setup structured logging
setup_logging(log_level=settings.LOG_LEVEL)
configure_uvicorn_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""

    # Startup
    logger.info("Starting Marketplace Feed", version=settings.VERSION)

    logger.info("Initializing database")
    init_db()

    logger.info("Checking Redis connection")
    if redis_health_check(get_redis_client()):
        logger.info("Redis connection successful")
    else:
        logger.warning("Redis connection failed - revocation checks will use the database")

    logger.info("Marketplace Feed started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Marketplace Feed")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="""
    # Marketplace Feed API

    A daily, personalized item feed for marketplace buyers.

    ## Buyers

    - `GET /feed/today` returns today's feed, generated on first request
    - `GET /feed/next` hands out the next unseen item until the feed is exhausted
    - Likes, dislikes and favorites shape tomorrow's feed

    ## Sellers

    - Create items with 1-5 images and tags
    - Only the owner can change or delete an item

    ## Sessions

    - Every login opens a session; at most 5 are active per user
    - Logout, logout from all devices, logout from other devices
    """,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "auth", "description": "Registration, login, token refresh and sessions"},
        {"name": "users", "description": "Account administration"},
        {"name": "items", "description": "Seller item management"},
        {"name": "tags", "description": "Item tags"},
        {"name": "interactions", "description": "Likes, dislikes and favorites"},
        {"name": "feed", "description": "Daily personalized feed"},
    ]
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Setup Prometheus metrics
setup_metrics(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


# Domain exceptions -> HTTP responses

def _error(status_code: int, detail: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, exc.message)


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return _error(status.HTTP_403_FORBIDDEN, exc.message)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return _error(status.HTTP_409_CONFLICT, exc.message)


@app.exception_handler(DomainRuleViolation)
async def domain_rule_handler(request: Request, exc: DomainRuleViolation):
    return _error(status.HTTP_400_BAD_REQUEST, exc.message)


@app.exception_handler(RoleRequiredError)
async def role_required_handler(request: Request, exc: RoleRequiredError):
    return _error(status.HTTP_403_FORBIDDEN, exc.message)


@app.exception_handler(AuthenticationError)
async def authentication_handler(request: Request, exc: AuthenticationError):
    return _error(status.HTTP_401_UNAUTHORIZED, exc.message, headers={"WWW-Authenticate": "Bearer"})


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    return _error(status.HTTP_401_UNAUTHORIZED, exc.message, headers={"WWW-Authenticate": "Bearer"})


@app.exception_handler(FeedItemMissingError)
async def feed_item_missing_handler(request: Request, exc: FeedItemMissingError):
    logger.error("Feed request failed", path=request.url.path, **exc.details)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


# Middleware for logging requests
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests"""
    clear_request_context()
    logger.info(
        "Request received",
        method=request.method,
        url=str(request.url),
        client=request.client.host if request.client else None
    )

    try:
        response = await call_next(request)
        logger.info(
            "Request completed",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code
        )
        return response
    finally:
        clear_request_context()


@app.get("/", tags=["root"])
def root():
    """Root endpoint"""
    return {
        "message": "Marketplace Feed API",
        "version": settings.VERSION,
        "docs": "/docs",
        "status": "operational"
    }


@app.get("/health", tags=["root"], status_code=status.HTTP_200_OK)
def health_check(db: Session = Depends(get_db), redis_client: Redis = Depends(get_redis)):
    """Health check endpoint"""

    redis_healthy = redis_health_check(redis_client)

    db_healthy = True
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        db_healthy = False

    overall_healthy = redis_healthy and db_healthy

    return {
        "status": "healthy" if overall_healthy else "degraded",
        "redis": "connected" if redis_healthy else "disconnected",
        "database": "connected" if db_healthy else "disconnected",
        "version": settings.VERSION
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "marketfeed.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
