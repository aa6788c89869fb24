"""Configuration settings for the marketplace feed backend"""

import re
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

EXPIRATION_PATTERN = re.compile(r"^(\d+)([smhdw])$")

EXPIRATION_UNITS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 60 * 60 * 24,
    "w": 60 * 60 * 24 * 7,
}


def parse_expiration_to_seconds(expiration: str) -> int:
    """
    Parse an expiration string into seconds

    Examples: '15m' -> 900, '1h' -> 3600, '7d' -> 604800

    Raises:
        ValueError: If the string is not <number><unit> with unit in s/m/h/d/w
    """
    match = EXPIRATION_PATTERN.match(expiration)
    if not match:
        raise ValueError(f"Invalid expiration format: {expiration}")

    return int(match.group(1)) * EXPIRATION_UNITS[match.group(2)]


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Marketplace Feed"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Database Settings
    POSTGRES_USER: str = "marketfeed"
    POSTGRES_PASSWORD: str = "marketfeed_pass"
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "marketfeed"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def DATABASE_URL(self) -> str:
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis Settings (revocation cache)
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    REDIS_SOCKET_TIMEOUT: float = 0.5

    @property
    def REDIS_URL(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # JWT Settings
    JWT_SECRET_KEY: str = "dev-secret-change-me-before-deploying-anywhere"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "marketfeed-api"
    JWT_AUDIENCE: str = "marketfeed-users"
    JWT_ACCESS_EXPIRATION: str = "15m"
    JWT_REFRESH_EXPIRATION: str = "7d"

    @property
    def ACCESS_TOKEN_TTL_SECONDS(self) -> int:
        return parse_expiration_to_seconds(self.JWT_ACCESS_EXPIRATION)

    @property
    def REFRESH_TOKEN_TTL_SECONDS(self) -> int:
        return parse_expiration_to_seconds(self.JWT_REFRESH_EXPIRATION)

    # Session Settings
    SESSION_MAX_CONCURRENT: int = 5
    SESSION_STRICT_IP_CHECK: bool = False

    # Marketplace Settings
    ITEMS_PER_PAGE: int = 100
    MAX_ITEM_IMAGES: int = 5
    DEFAULT_CURRENCY: str = "USD"

    # Feed Settings
    DAILY_FEED_SIZE: int = 20
    CANDIDATE_POOL_LIMIT: int = 1000  # Performance cap on scored candidates

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    AUTH_RATE_LIMIT: str = "10/minute"

    # Background jobs
    CELERY_BROKER_URL: str = "redis://redis:6379/2"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/3"

    @field_validator("JWT_SECRET_KEY")
    @classmethod
    def secret_long_enough(cls, value: str) -> str:
        if len(value) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return value

    @field_validator("JWT_ACCESS_EXPIRATION", "JWT_REFRESH_EXPIRATION")
    @classmethod
    def expiration_format(cls, value: str) -> str:
        parse_expiration_to_seconds(value)
        return value

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
