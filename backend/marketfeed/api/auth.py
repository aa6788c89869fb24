"""Authentication API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Request, status

from ..models import User
from ..schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RevokedResponse,
    SessionResponse,
    TokenResponse,
)
from ..schemas.user import UserCreate, UserResponse
from ..services.auth import AuthService, ClientInfo, TokenPair
from ..services.session import SessionService
from ..utils.dependencies import (
    AuthContext,
    get_auth_context,
    get_auth_service,
    get_client_info,
    get_current_user,
    get_session_service,
)
from ..utils.rate_limit import AUTH_RATE_LIMIT, limiter

router = APIRouter()


def _auth_response(user: User, tokens: TokenPair) -> AuthResponse:
    return AuthResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT)
def register(
    request: Request,
    user_in: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
    client: ClientInfo = Depends(get_client_info),
):
    """
    Register a new buyer account

    Creates the user, opens a session and returns the token pair.
    """
    user, tokens = auth_service.register(user_in.email, user_in.password, name=user_in.name, client=client)
    return _auth_response(user, tokens)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(AUTH_RATE_LIMIT)
def login(
    request: Request,
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    client: ClientInfo = Depends(get_client_info),
):
    """
    Login and get access token

    Every login opens a new session. At the concurrency ceiling the least
    recently active session is revoked.
    """
    user, tokens = auth_service.login(login_data.email, login_data.password, client=client)
    return _auth_response(user, tokens)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Exchange a refresh token for a new access token on the same session"""
    tokens = auth_service.refresh(refresh_data.refresh_token)
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
    )


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user information"""
    return current_user


@router.post("/logout", response_model=MessageResponse)
def logout(
    context: AuthContext = Depends(get_auth_context),
    session_service: SessionService = Depends(get_session_service),
):
    """Revoke the session behind the presented token"""
    session_service.revoke_session(context.session_jti)
    return MessageResponse(message="Logged out")


@router.post("/logout-all", response_model=RevokedResponse)
def logout_all(
    context: AuthContext = Depends(get_auth_context),
    session_service: SessionService = Depends(get_session_service),
):
    """Revoke every session of the current user, this one included"""
    revoked = session_service.revoke_all_for_user(context.user.id)
    return RevokedResponse(message="Logged out from all sessions", revoked=revoked)


@router.post("/logout-others", response_model=RevokedResponse)
def logout_others(
    context: AuthContext = Depends(get_auth_context),
    session_service: SessionService = Depends(get_session_service),
):
    """Revoke every session of the current user except this one"""
    revoked = session_service.revoke_all_for_user_except(context.user.id, context.session_jti)
    return RevokedResponse(message="Logged out from other sessions", revoked=revoked)


@router.get("/sessions", response_model=List[SessionResponse])
def list_sessions(
    context: AuthContext = Depends(get_auth_context),
    session_service: SessionService = Depends(get_session_service),
):
    """Active sessions of the current user; the caller's own is flagged"""
    return session_service.get_user_sessions(context.user.id, current_jti=context.session_jti)
