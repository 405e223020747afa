"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the application.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration
    # DATABASE_URL wins when set (e.g. sqlite:// for tests); otherwise built from POSTGRES_*.
    DATABASE_URL: Optional[str] = Field(default=None)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="calmtrack")
    POSTGRES_HOST: str = Field(default="postgres")
    POSTGRES_PORT: int = Field(default=5432)

    # Database Pool Configuration
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=3600)  # 1 hour

    # Redis Configuration (empty string disables caching and rate limiting)
    REDIS_URL: str = Field(default="redis://redis:6379/0")

    # JWT Authentication - REQUIRED for token signing
    # Must be set via environment variable, never use default in production
    SECRET_KEY: str = Field(
        default=...,  # Required - no default
        description="JWT signing key. Must be cryptographically secure (32+ chars). "
                    "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=7 * 24 * 60)  # 7 days

    # Phone / OTP authentication
    PHONE_HASH_PEPPER: str = Field(default="calmtrack-phone-pepper")
    OTP_TTL_MINUTES: int = Field(default=5)
    OTP_MAX_ATTEMPTS: int = Field(default=5)
    EMAIL_CODE_TTL_MINUTES: int = Field(default=15)
    BCRYPT_ROUNDS: int = Field(default=12)

    # Twilio SMS (OTP delivery). When unset, codes are logged instead.
    TWILIO_ACCOUNT_SID: Optional[str] = Field(default=None)
    TWILIO_AUTH_TOKEN: Optional[str] = Field(default=None)
    TWILIO_PHONE_NUMBER: Optional[str] = Field(default=None)

    # Google (sign-in and Google Fit share the same OAuth client)
    GOOGLE_CLIENT_ID: Optional[str] = Field(default=None)
    GOOGLE_CLIENT_SECRET: Optional[str] = Field(default=None)

    # Fitbit
    FITBIT_CLIENT_ID: Optional[str] = Field(default=None)
    FITBIT_CLIENT_SECRET: Optional[str] = Field(default=None)

    # Gemini (generative text). Without a key every AI call returns its static fallback.
    GEMINI_API_KEY: Optional[str] = Field(default=None)
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash")

    # Token Encryption (wearable OAuth tokens at rest)
    TOKEN_ENCRYPTION_KEY: Optional[str] = Field(default=None)

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)
    API_RELOAD: bool = Field(default=False)
    # Public base URL of this API (used to build provider redirect URIs).
    API_BASE_URL: str = Field(default="http://localhost:8000")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_PER_MINUTE: int = Field(default=60)

    # External API Configuration
    EXTERNAL_API_TIMEOUT: int = Field(default=30)

    # Celery Configuration
    CELERY_BROKER_URL: str = Field(default="redis://redis:6379/0")
    CELERY_RESULT_BACKEND: str = Field(default="redis://redis:6379/0")
    CELERY_TASK_ALWAYS_EAGER: bool = Field(default=False)

    # Email Configuration
    EMAIL_ENABLED: bool = Field(default=False)
    SMTP_SERVER: str = Field(default="localhost")
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: Optional[str] = Field(default=None)
    SMTP_PASSWORD: Optional[str] = Field(default=None)
    FROM_EMAIL: str = Field(default="noreply@calmtrack.app")
    FROM_NAME: str = Field(default="CalmTrack")

    # Cache Configuration
    CACHE_TTL_DEFAULT: int = Field(default=300)  # 5 minutes
    CACHE_TTL_COUNSELLORS: int = Field(default=600)  # 10 minutes

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # CORS - comma-separated list of allowed origins for production
    # e.g., "https://calmtrack.app,https://www.calmtrack.app"
    CORS_ORIGINS: Optional[str] = Field(default=None)

    # Web app base URL (for OAuth redirects back to the UI).
    WEB_APP_BASE_URL: str = Field(default="http://localhost:5000")

    # OAuth state TTL for provider callbacks (seconds).
    OAUTH_STATE_TTL_S: int = Field(default=600)

    # Sentry Error Tracking
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.1)  # 10% of transactions
    SENTRY_PROFILES_SAMPLE_RATE: float = Field(default=0.1)


# Global settings instance
settings = Settings()
