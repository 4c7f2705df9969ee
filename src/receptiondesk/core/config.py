"""
Configuration management for the reception desk backend.

This module provides centralized configuration using Pydantic Settings
for environment-based configuration management.
"""

from typing import Any, List, Optional

import os
from pathlib import Path

from pydantic import Field, model_validator, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(env_prefix="MONGO_")

    uri: str = Field(default="mongodb://localhost:27017", description="MongoDB connection URI")
    db_name: str = Field(default="clin", description="MongoDB database name")
    server_selection_timeout_ms: int = Field(default=8000, description="Server selection timeout")
    connect_timeout_ms: int = Field(default=8000, description="Socket connect timeout")
    max_pool_size: int = Field(default=10, description="Maximum connections in the driver pool")
    min_pool_size: int = Field(default=5, description="Minimum connections kept in the driver pool")
    health_check_interval_seconds: float = Field(
        default=30.0, description="Minimum seconds between ping health checks of the cached client"
    )
    use_transactions: bool = Field(
        default=False,
        description="Write appointment status and outbox events in one transaction (requires a replica set)",
    )

    @model_validator(mode="before")
    @classmethod
    def apply_legacy_env_names(cls, data: Any) -> Any:
        """Fall back to the MONGODB_URI / MONGODB_DB names older deployments use."""
        if isinstance(data, dict):
            if not data.get("uri") and not os.getenv("MONGO_URI") and os.getenv("MONGODB_URI"):
                data["uri"] = os.getenv("MONGODB_URI")
            if not data.get("db_name") and not os.getenv("MONGO_DB_NAME") and os.getenv("MONGODB_DB"):
                data["db_name"] = os.getenv("MONGODB_DB")
        return data

    @validator("uri")
    def validate_mongo_uri(cls, v: str) -> str:
        """Validate MongoDB URI format."""
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(
                "MongoDB URI must start with 'mongodb://' or 'mongodb+srv://'"
            )
        return v


class SecuritySettings(BaseSettings):
    """Security configuration settings."""

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    secret_key: str = Field(
        default="your-secret-key-change-in-production", description="Secret used to derive the session key"
    )
    session_key: str = Field(default="", description="Fernet key for session tokens (optional)")
    session_ttl_seconds: int = Field(default=12 * 60 * 60, description="Session token lifetime")

    @validator("secret_key")
    def validate_secret_key(cls, v: str) -> str:
        """Validate secret key strength."""
        if len(v) < 32:
            raise ValueError("Secret key must be at least 32 characters long")
        return v

    @validator("session_ttl_seconds")
    def validate_session_ttl(cls, v: int) -> int:
        if v < 60:
            raise ValueError("Session TTL must be at least 60 seconds")
        return v


class AuthSettings(BaseSettings):
    """Session enforcement and admin API key settings."""

    model_config = SettingsConfigDict(env_prefix="AUTH_")

    require_session: bool = Field(
        default=False,
        description="Require a valid session token (and linked doctor scope) on receptionist endpoints",
    )
    api_keys: str = Field(
        default="", description="Admin API keys as comma-separated key:user pairs (falls back to API_KEYS)"
    )


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins",
    )
    allowed_methods: List[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods",
    )
    allowed_headers: List[str] = Field(
        default=["*"], description="Allowed HTTP headers"
    )
    allow_credentials: bool = Field(
        default=True, description="Allow credentials in CORS"
    )

    @validator("allowed_origins", pre=True)
    def parse_allowed_origins(cls, v):
        """Parse allowed origins from string or list."""
        if isinstance(v, str):
            # Handle JSON-like string format
            if v.startswith("[") and v.endswith("]"):
                import json

                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return [v.strip()]
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="text", description="Log format (json or text)")
    file_path: Optional[str] = Field(default=None, description="Log file path")

    @validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @validator("format")
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class RelaySettings(BaseSettings):
    """Real-time relay settings (server socket and the Python subscriber defaults)."""

    model_config = SettingsConfigDict(env_prefix="RELAY_")

    enabled: bool = Field(default=True, description="Accept websocket subscribers")
    handshake_timeout_seconds: float = Field(default=10.0, description="Client handshake timeout")
    reconnect_attempts: int = Field(default=5, description="Client reconnection attempts before giving up")
    reconnect_delay_seconds: float = Field(default=1.0, description="Client base reconnection delay")
    max_reconnect_delay_seconds: float = Field(default=30.0, description="Upper bound of the client backoff")

    @validator("reconnect_attempts")
    def validate_reconnect_attempts(cls, v: int) -> int:
        if not 0 <= v <= 50:
            raise ValueError("reconnect_attempts must be between 0 and 50")
        return v


class OutboxSettings(BaseSettings):
    """Outbox dispatcher settings."""

    model_config = SettingsConfigDict(env_prefix="OUTBOX_")

    enabled: bool = Field(default=True, description="Run the periodic outbox dispatcher in the app process")
    interval_seconds: float = Field(default=15.0, description="Seconds between periodic drains")
    batch_size: int = Field(default=50, description="Maximum events handled per drain")
    max_attempts: int = Field(default=5, description="Attempts before an event is parked as failed")
    retry_backoff_seconds: List[float] = Field(
        default=[2.0, 10.0, 30.0, 120.0], description="Delay before each retry (last value repeats)"
    )
    processing_stale_seconds: int = Field(
        default=120, description="Seconds before a processing claim is considered abandoned"
    )

    @validator("max_attempts")
    def validate_max_attempts(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError("max_attempts must be between 1 and 100")
        return v


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="Reception-Desk", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    debug: bool = Field(default=False, description="Debug mode")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    relay: RelaySettings = Field(default_factory=RelaySettings)
    outbox: OutboxSettings = Field(default_factory=OutboxSettings)

    @validator("app_env")
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @validator("port")
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.app_env == "testing"


# Global settings instance (loaded after attempting to read .env)
_settings: Optional[Settings] = None


def _load_env_file_if_available() -> None:
    """Best-effort load of .env by searching current and parent directories.

    This helps in environments where the working directory isn't the backend folder
    and pydantic's env_file doesn't get resolved as expected.
    """
    from dotenv import load_dotenv

    cwd = Path(os.getcwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            # Do not override already-set environment variables
            load_dotenv(dotenv_path=str(candidate), override=False)
            break


def get_settings() -> Settings:
    """Get application settings instance (lazy-init with .env discovery)."""
    global _settings
    if _settings is None:
        _load_env_file_if_available()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
