"""Authentication and service dependencies for FastAPI"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from redis import Redis
from sqlalchemy.orm import Session

from ..exceptions import AuthenticationError, RoleRequiredError
from ..models import User, UserRole
from ..services.auth import AuthService, ClientInfo
from ..services.catalog import CatalogService
from ..services.feed import FeedService
from ..services.interactions import InteractionService
from ..services.session import SessionService
from .auth import ACCESS_TOKEN, TokenSigner, get_token_signer
from .cache import get_redis
from .database import get_db
from .logging import bind_request_context, get_logger
from .metrics import record_auth_failure

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)

DEVICE_ID_HEADER = "X-Device-Id"


@dataclass
class AuthContext:
    """The authenticated caller of the current request"""

    user: User
    session_jti: str
    payload: Dict[str, Any]


def get_signer() -> TokenSigner:
    return get_token_signer()


def get_session_service(
    db: Session = Depends(get_db),
    redis_client: Redis = Depends(get_redis),
) -> SessionService:
    return SessionService(db, redis_client)


def get_auth_service(
    db: Session = Depends(get_db),
    session_service: SessionService = Depends(get_session_service),
    signer: TokenSigner = Depends(get_signer),
) -> AuthService:
    return AuthService(db, session_service, signer)


def get_feed_service(db: Session = Depends(get_db)) -> FeedService:
    return FeedService(db)


def get_interaction_service(db: Session = Depends(get_db)) -> InteractionService:
    return InteractionService(db)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        device_id=request.headers.get(DEVICE_ID_HEADER),
    )


def _reject(reason: str, **details) -> AuthenticationError:
    record_auth_failure(reason)
    logger.info("Authentication rejected", reason=reason, **details)
    return AuthenticationError(reason, details=details)


def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    session_service: SessionService = Depends(get_session_service),
    signer: TokenSigner = Depends(get_signer),
) -> AuthContext:
    """
    Validate the bearer token and its session

    Order: signature and claims, token type, session validity (revocation
    cache, then database), strict IP check, user state. Every failure is
    the same "Not authenticated" to the client; the reason is logged.
    """
    if credentials is None:
        raise _reject("missing_token")

    payload = signer.verify(credentials.credentials)
    if payload is None:
        raise _reject("invalid_token")

    if payload.get("type") != ACCESS_TOKEN:
        raise _reject("wrong_token_type")

    session_jti = payload.get("sid")
    if not session_jti or not session_service.is_session_valid(session_jti):
        raise _reject("session_invalid", sub=payload.get("sub"))

    client_ip = request.client.host if request.client else None
    if not session_service.verify_ip_address(session_jti, client_ip):
        raise _reject("ip_mismatch", sub=payload.get("sub"))

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _reject("invalid_subject") from None

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise _reject("user_inactive", sub=user_id)

    session_service.update_activity(session_jti)
    bind_request_context(user_id=user.id)

    return AuthContext(user=user, session_jti=session_jti, payload=payload)


def get_current_user(context: AuthContext = Depends(get_auth_context)) -> User:
    """Get the current authenticated user"""
    return context.user


def require_role(*allowed: UserRole):
    """
    Dependency to require one of the given roles (admins always pass)

    Usage:
        @router.get("/items/mine")
        def mine(user: User = Depends(require_role(UserRole.SELLER))):
            ...
    """
    allowed_values = {role.value for role in allowed} | {UserRole.ADMIN.value}

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_values:
            raise RoleRequiredError(
                f"Access denied. Required role: {' or '.join(sorted(allowed_values))}",
                details={"role": current_user.role},
            )
        return current_user

    return role_checker


require_buyer = require_role(UserRole.BUYER)
require_seller = require_role(UserRole.SELLER)
require_admin = require_role(UserRole.ADMIN)
