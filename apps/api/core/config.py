"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the API and the worker.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator
from typing import Optional
import re
from dotenv import load_dotenv

load_dotenv()

_HOUR_MINUTE_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration
    # DATABASE_URL wins when set (tests use SQLite); otherwise built from POSTGRES_*.
    DATABASE_URL: Optional[str] = Field(default=None)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="timeshift")
    POSTGRES_HOST: str = Field(default="postgres")
    POSTGRES_PORT: int = Field(default=5432)

    # Database Pool Configuration
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=3600)  # 1 hour

    # Redis Configuration
    REDIS_URL: str = Field(default="redis://redis:6379/0")

    # Strava API Configuration
    STRAVA_CLIENT_ID: Optional[str] = Field(default=None)
    STRAVA_CLIENT_SECRET: Optional[str] = Field(default=None)
    STRAVA_WEBHOOK_VERIFY_TOKEN: Optional[str] = Field(default=None)
    # The callback rejects logins that did not grant exactly this scope.
    STRAVA_REQUIRED_SCOPE: str = Field(default="read,activity:write,activity:read_all")

    # Token Encryption
    TOKEN_ENCRYPTION_KEY: Optional[str] = Field(default=None)

    # Work window, local wall-clock "HH:MM" on the activity's own day.
    WORK_WINDOW_START: str = Field(default="09:00")
    WORK_WINDOW_END: str = Field(default="17:00")

    # Upload status polling
    UPLOAD_POLL_INTERVAL_S: int = Field(default=5, ge=1)
    UPLOAD_POLL_MAX_ATTEMPTS: int = Field(default=120, ge=1)  # 10 minutes at the default interval

    # Loops (transactional email)
    LOOPS_API_KEY: Optional[str] = Field(default=None)
    LOOPS_RIDE_UPLOADED_ID: Optional[str] = Field(default=None)
    LOOPS_UPLOAD_FAILED_ID: Optional[str] = Field(default=None)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # External API Configuration
    EXTERNAL_API_TIMEOUT: int = Field(default=30)

    # Celery Configuration
    CELERY_BROKER_URL: str = Field(default="redis://redis:6379/0")
    CELERY_RESULT_BACKEND: str = Field(default="redis://redis:6379/0")

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Web app base URL (the OAuth callback redirects back here).
    WEB_APP_BASE_URL: str = Field(default="http://localhost:3000")

    # Sentry Error Tracking
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.1)  # 10% of transactions
    SENTRY_PROFILES_SAMPLE_RATE: float = Field(default=0.1)

    @field_validator("WORK_WINDOW_START", "WORK_WINDOW_END")
    @classmethod
    def _validate_hour_minute(cls, value: str) -> str:
        if not _HOUR_MINUTE_RE.match(value):
            raise ValueError(f"expected HH:MM, got {value!r}")
        return value

    @model_validator(mode="after")
    def _validate_work_window(self) -> "Settings":
        if self.WORK_WINDOW_START >= self.WORK_WINDOW_END:
            raise ValueError("WORK_WINDOW_START must be before WORK_WINDOW_END")
        return self

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:"
            f"{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )


# Global settings instance
settings = Settings()
