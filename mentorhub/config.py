from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal, Optional

class Settings(BaseSettings):
    # Pydantic Settings will automatically look for these as environment variables
    # or in a .env file

    # Database Settings
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "mentorhub_db"
    # Full URL override, e.g. "sqlite://" for local runs and tests
    DATABASE_URL: Optional[str] = None

    # SQLAlchemy Connection Pooling Settings
    # Refer to https://docs.sqlalchemy.org/en/20/core/engines.html#connection-pooling-options
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30 # seconds
    DB_POOL_RECYCLE: int = 1800 # seconds (30 minutes) - recycle connections older than this

    # Auth / JWT
    SECRET_KEY: str = "dev-only-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    COOKIE_SECURE: bool = False

    # Booking rules
    BOOKING_MIN_DURATION_MINUTES: int = 15
    BOOKING_MAX_DURATION_MINUTES: int = 240
    MEET_LINK_BASE_URL: str = "https://meet.mentorhub.app"
    PLATFORM_COMMISSION_RATE: float = 0.10

    # What the rate limiter answers when its counter store is unreachable
    RATE_LIMIT_ON_UPSTREAM_ERROR: Literal["allow", "deny"] = "allow"

    # Transactional email (Resend)
    RESEND_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "MentorHub <noreply@mentorhub.app>"
    APP_URL: str = "https://mentorhub.app"

    # Scheduled jobs
    CRON_SECRET: Optional[str] = None
    REVIEW_REQUEST_DELAY_MINUTES: int = 30

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore" # Ignore extra env variables not defined here
    )

@lru_cache() # Cache settings to avoid re-reading on every call
def get_settings():
    """Returns a cached instance of the Settings."""
    return Settings()
