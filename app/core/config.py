# python
# app/core/config.py
"""Configuration settings for the Contract Analysis API.

Uses Pydantic BaseSettings for environment variable management.
"""
import uuid
from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Identity forwarded to the workflow engine when a caller cannot be resolved.
DEFAULT_FALLBACK_USER_ID = uuid.UUID("c3d7a5b9-8e2f-4a6d-9c1b-3e5f7a9b2d4e")


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


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Contract Analysis API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    # ===== Authentication =====
    auth_jwt_secret: str | None = Field(
        default=None, description="Secret used to verify access tokens (unverified decode if unset)"
    )
    auth_jwt_algorithm: str = Field(default="HS256", description="Access token algorithm")
    fallback_user_id: uuid.UUID = Field(
        default=DEFAULT_FALLBACK_USER_ID,
        description="Identity substituted when the caller of the analysis relay is anonymous",
    )
    allow_fallback_identity: bool = Field(
        default=True, description="Substitute the fallback identity instead of failing closed"
    )

    # ===== Database Settings =====
    database_url: str | None = Field(default=None, description="Database connection URL")
    test_database_url: str | None = Field(default=None, description="Test database URL")

    # ===== Workflow Engine (n8n) =====
    n8n_webhook_url: str | None = Field(default=None, description="Workflow webhook URL")
    webhook_timeout: float = Field(default=120.0, description="Workflow request timeout in seconds")
    workflow_agent_label: str = Field(
        default="n8n-workflow", description="Agent label stored on relayed assistant messages"
    )

    # ===== Memory Service (Zep) =====
    zep_api_url: str | None = Field(default=None, description="Zep API base URL")
    zep_api_key: str | None = Field(default=None, description="Zep API key")
    memory_relay_url: str = Field(
        default="http://127.0.0.1:8000/api/zep-memory",
        description="Internal endpoint relaying memory calls to Zep",
    )
    memory_request_timeout: float = Field(default=10.0, description="Memory request timeout")

    # ===== File Storage Settings =====
    storage_url: str | None = Field(
        default=None, description="Object storage REST base URL (e.g. https://<ref>.supabase.co/storage/v1)"
    )
    storage_api_key: str | None = Field(default=None, description="Object storage service key")
    storage_bucket: str = Field(default="contracts", description="Bucket holding uploaded contracts")
    storage_timeout: float = Field(default=60.0, description="File upload timeout in seconds")

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://localhost:8080,http://127.0.0.1:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(self.allowed_origins, str):
            return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return self.allowed_origins if isinstance(self.allowed_origins, list) else []

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")
    log_format: LogFormatEnum = Field(default=LogFormatEnum.simple, description="Log format")

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
    def has_webhook(self) -> bool:
        return bool(self.n8n_webhook_url and self.n8n_webhook_url.strip())

    @property
    def has_memory_service(self) -> bool:
        return bool(self.zep_api_url and self.zep_api_key)

    @property
    def has_file_storage(self) -> bool:
        return bool(self.storage_url and self.storage_api_key)

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
            return lv
        return v

    @field_validator("zep_api_url", "storage_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        if v:
            return v.rstrip("/")
        return v


settings = Settings()


class ConfigValidator:
    @staticmethod
    def validate_required_settings():
        errors = []
        if not settings.database_url:
            errors.append("DATABASE_URL is required")
        if not settings.has_webhook:
            errors.append("N8N_WEBHOOK_URL is required")
        if settings.is_production and not settings.auth_jwt_secret:
            errors.append("AUTH_JWT_SECRET is required in production")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    @staticmethod
    def get_feature_status() -> dict:
        return {
            "workflow_configured": settings.has_webhook,
            "memory_enabled": settings.has_memory_service,
            "file_storage": settings.has_file_storage,
            "fallback_identity": settings.allow_fallback_identity,
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
        "auth_configured": bool(settings.auth_jwt_secret),
    }


__all__ = [
    "settings",
    "Settings",
    "ConfigValidator",
    "get_config_summary",
    "EnvironmentEnum",
    "LogLevelEnum",
    "LogFormatEnum",
    "DEFAULT_FALLBACK_USER_ID",
]
