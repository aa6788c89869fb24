"""Account registration, login and token issuance"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import AuthenticationError, ConflictError, InvalidCredentialsError
from ..models import User, UserRole
from ..utils.auth import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    TokenSigner,
    generate_jti,
    get_password_hash,
    get_token_signer,
    verify_password,
)
from ..utils.logging import get_logger
from .session import SessionService

logger = get_logger(__name__)


@dataclass
class ClientInfo:
    """Request metadata stored with a session"""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_id: Optional[str] = None


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    session_jti: str
    expires_in: int


class AuthService:
    """
    Credentials and token lifecycle

    One login creates one session, keyed by the refresh token's jti. The
    access token has its own jti and points at the session through ``sid``,
    so revoking the session invalidates both tokens.
    """

    def __init__(
        self,
        db: Session,
        session_service: SessionService,
        signer: Optional[TokenSigner] = None,
    ):
        self.db = db
        self.sessions = session_service
        self.signer = signer or get_token_signer()

    # Accounts

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: UserRole = UserRole.BUYER,
    ) -> User:
        if self.get_user_by_email(email):
            raise ConflictError("User with this email already exists", details={"email": email})

        user = User(
            email=email.lower(),
            password_hash=get_password_hash(password),
            name=name,
            role=role.value,
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info("User created", user_id=user.id, role=user.role)
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.get_user_by_email(email)

        if user is None or not user.password_hash or not verify_password(password, user.password_hash):
            logger.info("Login rejected", reason="bad_credentials")
            raise InvalidCredentialsError("Incorrect email or password")

        if not user.is_active:
            logger.info("Login rejected", reason="inactive", user_id=user.id)
            raise InvalidCredentialsError("Account is inactive")

        return user

    # Tokens

    def _access_claims(self, user: User, session_jti: str, device_id: Optional[str]) -> Dict[str, Any]:
        claims = {
            "sub": str(user.id),
            "role": user.role,
            "jti": generate_jti(),
            "sid": session_jti,
            "type": ACCESS_TOKEN,
        }
        if device_id:
            claims["device_id"] = device_id
        return claims

    def issue_tokens(self, user: User, client: Optional[ClientInfo] = None) -> TokenPair:
        """Create a session and the access/refresh pair bound to it"""
        client = client or ClientInfo()
        refresh_ttl = settings.REFRESH_TOKEN_TTL_SECONDS
        access_ttl = settings.ACCESS_TOKEN_TTL_SECONDS

        session_jti = self.sessions.generate_jti()
        self.sessions.create_session(
            user_id=user.id,
            jti=session_jti,
            ttl_seconds=refresh_ttl,
            device_id=client.device_id,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )

        refresh_claims = {
            "sub": str(user.id),
            "role": user.role,
            "jti": session_jti,
            "sid": session_jti,
            "type": REFRESH_TOKEN,
        }
        if client.device_id:
            refresh_claims["device_id"] = client.device_id

        return TokenPair(
            access_token=self.signer.sign(self._access_claims(user, session_jti, client.device_id), access_ttl),
            refresh_token=self.signer.sign(refresh_claims, refresh_ttl),
            session_jti=session_jti,
            expires_in=access_ttl,
        )

    def register(self, email: str, password: str, name: Optional[str] = None, client: Optional[ClientInfo] = None):
        user = self.create_user(email, password, name=name)
        return user, self.issue_tokens(user, client)

    def login(self, email: str, password: str, client: Optional[ClientInfo] = None):
        user = self.authenticate(email, password)
        tokens = self.issue_tokens(user, client)
        logger.info("User logged in", user_id=user.id)
        return user, tokens

    def refresh(self, refresh_token: str) -> TokenPair:
        """New access token for the refresh token's (still valid) session"""
        payload = self.signer.verify(refresh_token)
        if payload is None:
            raise AuthenticationError("invalid_refresh_token")
        if payload.get("type") != REFRESH_TOKEN:
            raise AuthenticationError("wrong_token_type")

        session_jti = payload.get("sid")
        if not session_jti or not self.sessions.is_session_valid(session_jti):
            raise AuthenticationError("session_invalid")

        user = self.db.get(User, int(payload["sub"]))
        if user is None or not user.is_active:
            raise AuthenticationError("user_inactive")

        self.sessions.update_activity(session_jti)
        access_ttl = settings.ACCESS_TOKEN_TTL_SECONDS
        return TokenPair(
            access_token=self.signer.sign(
                self._access_claims(user, session_jti, payload.get("device_id")), access_ttl
            ),
            refresh_token=refresh_token,
            session_jti=session_jti,
            expires_in=access_ttl,
        )
