"""
Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration management with validation,
loading settings from environment variables and .env files.
"""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Secrets should never be committed to code - use .env file (gitignored).
    """

    # API Configuration
    api_prefix: str = Field(
        default="/api",
        description="Prefix for all API endpoints"
    )
    project_name: str = Field(
        default="J's Ashanti Store",
        description="Project name displayed in API docs"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    log_json: bool = Field(
        default=True,
        description="Emit JSON log lines (disable for local development)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/store.db",
        description="Database connection URL (SQLite by default, PostgreSQL-ready format)"
    )
    enable_db_create_all: bool = Field(
        default=True,
        description="Create missing tables at startup"
    )

    # Security Configuration
    secret_key: str = Field(
        ...,
        description="Secret key for JWT token signing (generate with: openssl rand -hex 32)"
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        description="JWT access token expiration time in minutes"
    )
    email_verification_expire_minutes: int = Field(
        default=60 * 24,
        description="Lifetime of email verification links in minutes"
    )
    admin_emails: List[str] = Field(
        default_factory=list,
        description="Emails that receive the admin role on sign-up"
    )
    min_password_length: int = Field(default=8)
    max_password_length: int = Field(default=100)

    # CORS Configuration
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (frontend URLs)"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow cookies/credentials in CORS requests"
    )
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Public storefront URL used in email links"
    )

    # Rate limiting (per client IP, requests per minute)
    rate_limit_enabled: bool = Field(
        default=True,
        description="Apply per-IP token bucket rate limits"
    )
    rate_limit_auth: int = Field(default=10, ge=1)
    rate_limit_events: int = Field(default=300, ge=1)
    rate_limit_default: int = Field(default=120, ge=1)
    rate_limit_trusted_proxies: List[str] = Field(
        default_factory=list,
        description="Proxy IPs/CIDRs whose X-Forwarded-For header is trusted"
    )

    # Email (Resend)
    resend_api_key: Optional[str] = Field(
        default=None,
        description="Resend API key; emails cannot be sent without it"
    )
    resend_base_url: str = Field(
        default="https://api.resend.com",
        description="Resend REST API base URL"
    )
    email_from: str = Field(
        default="onboarding@resend.dev",
        description="Sender address for transactional email"
    )

    # Insight analysis (OpenAI-compatible, OpenRouter by default)
    openrouter_api_key: Optional[str] = Field(
        default=None,
        description="OpenRouter API key for behavioural insight analysis"
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL (OpenAI-compatible)"
    )
    insight_model: str = Field(
        default="meta-llama/llama-3.3-70b-instruct",
        description="Model used to summarise analytics event batches"
    )

    # Analytics pipeline
    background_workers_enabled: bool = Field(
        default=True,
        description="Start the event queue worker and batch processor with the app"
    )
    batch_interval_seconds: int = Field(
        default=300,
        description="Seconds between batch processor runs (default: 5 minutes)"
    )
    batch_window_seconds: int = Field(
        default=300,
        description="Age after which an OPEN batch is sealed"
    )
    analysis_max_attempts: int = Field(
        default=5,
        ge=1,
        description="Attempts before an analysis job is dead-lettered"
    )
    queue_max_attempts: int = Field(default=3, ge=1)
    queue_backoff_seconds: float = Field(default=2.0, ge=0.0)
    queue_keep_completed: int = Field(default=1000, ge=0)
    queue_keep_failed: int = Field(default=500, ge=0)

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
        env_nested_delimiter="__",  # Support nested config via env vars
    )

    @field_validator("cors_origins", "admin_emails", "rate_limit_trusted_proxies", mode="before")
    @classmethod
    def parse_string_list(cls, v: str | List[str]) -> List[str]:
        """
        Parse list settings from JSON string or list.

        Supports comma-separated values for easier .env configuration.
        """
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # Fallback: split by comma if not valid JSON
                return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("admin_emails")
    @classmethod
    def normalize_admin_emails(cls, v: List[str]) -> List[str]:
        return [email.strip().lower() for email in v]

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """
        Validate that secret_key is properly configured.

        Raises ValueError if still using placeholder value or too short.
        Security requirement: JWT signing keys must be at least 32 characters.
        """
        if not v or v.strip() == "":
            raise ValueError(
                "SECRET_KEY is required and cannot be empty. "
                "Generate one with: openssl rand -hex 32"
            )
        if v in ["generate-with-openssl-rand-hex-32", "CHANGE_ME_32_CHARS_MIN", "your-secret-key-here"]:
            raise ValueError(
                "SECRET_KEY must be set to a secure random value (not placeholder). "
                "Generate one with: openssl rand -hex 32"
            )
        if len(v) < 32:
            raise ValueError(
                f"SECRET_KEY must be at least 32 characters long for security. "
                f"Current length: {len(v)}. Generate with: openssl rand -hex 32"
            )
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """
        Validate database URL format.

        Supports SQLite (development) and PostgreSQL (production).
        """
        if not v or v.strip() == "":
            raise ValueError("DATABASE_URL is required and cannot be empty")

        valid_schemes = ["sqlite", "sqlite+aiosqlite", "postgresql", "postgresql+asyncpg"]
        if not any(v.startswith(scheme + "://") or v.startswith(scheme + ":///") for scheme in valid_schemes):
            raise ValueError(
                f"DATABASE_URL must start with one of: {', '.join(valid_schemes)}. "
                f"Got: {v[:20]}..."
            )

        return v

    @field_validator("resend_api_key", "openrouter_api_key")
    @classmethod
    def blank_key_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty or placeholder API keys as not configured."""
        if v is None or v.strip() == "":
            return None
        if "your-api-key-here" in v.lower() or "change_me" in v.lower():
            return None
        return v


# Global settings instance
# Import this instance throughout the application
settings = Settings()
