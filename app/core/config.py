# python
# app/core/config.py
"""Configuration settings for the branching chat service.

Uses Pydantic BaseSettings for environment variable management.
"""
import secrets
from enum import Enum

from pydantic import AnyHttpUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormatEnum(str, Enum):
    simple = "simple"
    json = "json"


DEFAULT_BRANCH_COLORS = "#FF6B6B,#4ECDC4,#45B7D1,#96CEB4,#FFEAA7,#DDA0DD,#98D8C8,#F7DC6F"


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Branching Chat API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    # ===== Security Settings =====
    secret_key: str = Field(
        default_factory=lambda: secrets.token_urlsafe(32),
        description="Secret key for JWT encoding",
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    encryption_key: str | None = Field(
        default=None, description="Fernet key used to encrypt stored API keys"
    )

    # ===== Database Settings =====
    database_url: str | None = Field(default=None, description="Database connection URL")
    db_pool_size: int = Field(default=20, description="Database connection pool size")
    db_max_overflow: int = Field(default=0, description="Database max overflow connections")

    # Test database URL
    test_database_url: str | None = Field(default=None, description="Test database URL")

    # ===== Authentication (Clerk) =====
    clerk_secret_key: str | None = Field(default=None, description="Clerk secret key")
    clerk_api_url: AnyHttpUrl = Field(default="https://api.clerk.com", description="Clerk API URL")

    # ===== Completion Provider (OpenAI-compatible) =====
    llm_api_base_url: str = Field(
        default="https://api.moonshot.ai/v1", description="Chat completions API base URL"
    )
    llm_model: str = Field(default="kimi-latest", description="Model requested for completions")
    ai_request_timeout: int = Field(default=30, description="Completion request timeout in seconds")
    ai_max_retry_attempts: int = Field(default=3, description="Attempts for retryable upstream errors")
    ai_retry_backoff_factor: float = Field(default=1.0, description="Exponential backoff multiplier")
    ai_retry_min_wait: int = Field(default=1, description="Minimum wait between retries in seconds")
    ai_retry_max_wait: int = Field(default=10, description="Maximum wait between retries in seconds")

    # ===== Branching Policy =====
    fork_copy_messages: bool = Field(
        default=False, description="Physically copy inherited messages into new forks"
    )
    main_branch_name: str = Field(default="main", description="Name of the auto-created root branch")
    main_branch_color: str = Field(default="#B7FF3A", description="Color of the main branch")
    branch_colors: str = Field(
        default=DEFAULT_BRANCH_COLORS, description="Palette for new branches (comma-separated)"
    )
    default_conversation_title: str = Field(default="New Conversation")
    default_fork_name: str = Field(default="Branch from message")
    title_max_length: int = Field(default=40, description="Auto-title length before truncation")
    max_branch_name_length: int = Field(default=100, description="Maximum branch name length")
    max_message_length: int = Field(default=32000, description="Maximum user message length")

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")
    log_format: LogFormatEnum = Field(default=LogFormatEnum.simple, description="Log format")

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def branch_colors_list(self) -> list[str]:
        return [color.strip() for color in self.branch_colors.split(",") if color.strip()]

    # ===== Server Settings =====
    host: str = Field(default="127.0.0.1", description="Host to bind the server")
    port: int = Field(default=8000, description="Port to bind the server")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_production(self) -> bool:
        return self.environment == EnvironmentEnum.production

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    @property
    def has_encryption(self) -> bool:
        return bool(self.encryption_key)

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
        return v

    @field_validator("title_max_length", "max_branch_name_length")
    @classmethod
    def validate_positive_length(cls, v):
        if v < 1:
            raise ValueError("Length limits must be positive")
        return v

    @field_validator("main_branch_color")
    @classmethod
    def validate_main_branch_color(cls, v):
        if not (len(v) == 7 and v.startswith("#")):
            raise ValueError("Main branch color must look like #RRGGBB")
        return v

    @model_validator(mode="after")
    def set_computed_fields(self):
        if not self.test_database_url and self.database_url and "neondb" in self.database_url:
            self.test_database_url = self.database_url.replace("neondb", "neondb_test")
        return self


settings = Settings()


class ConfigValidator:
    @staticmethod
    def validate_required_settings():
        errors = []
        if not settings.database_url:
            errors.append("DATABASE_URL is required")
        if not settings.clerk_secret_key:
            errors.append("CLERK_SECRET_KEY is required")
        if not settings.encryption_key:
            errors.append("ENCRYPTION_KEY is required")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    @staticmethod
    def get_feature_status() -> dict:
        return {
            "credential_storage": settings.has_encryption,
            "fork_copy_messages": settings.fork_copy_messages,
            "llm_model": settings.llm_model,
            "environment": settings.environment,
        }


def get_config_summary() -> dict:
    return {
        "app_name": settings.app_name,
        "version": settings.version,
        "environment": settings.environment,
        "debug": settings.debug,
        "features": ConfigValidator.get_feature_status(),
        "database_configured": bool(settings.database_url),
        "auth_configured": bool(settings.clerk_secret_key),
    }


__all__ = [
    "settings",
    "Settings",
    "ConfigValidator",
    "get_config_summary",
    "EnvironmentEnum",
    "LogLevelEnum",
    "LogFormatEnum",
]
