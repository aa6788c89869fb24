"""Password hashing and JWT signing"""

import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

from argon2 import PasswordHasher
from argon2.exceptions import Argon2Error, InvalidHashError
from jose import JWTError, jwt

from ..config import settings
from .dates import utcnow
from .logging import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

# Argon2id with library defaults (memory-hard)
_password_hasher = PasswordHasher()


def get_password_hash(password: str) -> str:
    """Hash a plaintext password"""
    return _password_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored hash; any failure is False"""
    try:
        return _password_hasher.verify(hashed_password, plain_password)
    except (Argon2Error, InvalidHashError):
        return False


def generate_jti() -> str:
    """Unique token identifier"""
    return str(uuid.uuid4())


class TokenSigner:
    """
    Signs and verifies JWTs with a shared secret

    Every token carries iss/aud/iat/exp; callers supply sub, role, jti and
    the rest of the payload.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience

    def sign(self, payload: Dict[str, Any], ttl_seconds: int) -> str:
        issued_at = utcnow()
        claims = {
            **payload,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=ttl_seconds),
        }
        if self.issuer:
            claims["iss"] = self.issuer
        if self.audience:
            claims["aud"] = self.audience

        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the payload, or None if the signature or any claim is invalid"""
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as e:
            logger.debug("Token verification failed", error=str(e))
            return None


def get_token_signer() -> TokenSigner:
    return TokenSigner(
        secret_key=settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
    )
