"""
esgate — Application Configuration
===================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
       `Settings.connection_config()` freezes the engine-facing subset into a
       ConnectionConfig that is handed to the EngineClient constructor.
Who:   Imported by main.py (lifespan, logging), __main__.py, and the tests.
When:  Loaded once at module import time.

Environment variables:
    ENGINE_URL        Base address of the search engine (http://localhost:9200)
    ENGINE_USERNAME   Basic-auth user (elastic)
    ENGINE_PASSWORD   Basic-auth password (required)
    ENGINE_INDEX      Target index / collection name (employee)
    ENGINE_TIMEOUT    Seconds per engine call; unset means wait indefinitely
    ENGINE_REFRESH    Refresh policy for writes: true, false, wait_for
    BACKEND_HOST      Interface to bind (0.0.0.0)
    BACKEND_PORT      Port to serve on (8080)
    LOG_LEVEL         DEBUG, INFO, WARNING, ERROR, CRITICAL
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ConnectionConfig(BaseModel):
    """
    Immutable engine connection parameters.

    Built once at startup and passed explicitly into EngineClient.
    Assigning to any field after construction raises a ValidationError.
    """

    base_url: str
    username: str
    password: str = Field(repr=False)
    index: str = "employee"
    timeout: Optional[float] = None
    refresh: Optional[str] = None

    model_config = {"frozen": True}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── Search Engine ─────────────────────────────────────────────────────
    engine_url: str = Field(
        default="http://localhost:9200",
        description="Base URL of the Elasticsearch-compatible engine",
    )
    engine_username: str = Field(default="elastic")
    engine_password: str = Field(default="", description="Basic-auth password")

    # What: Name of the index all documents live in (the "collection")
    engine_index: str = Field(default="employee", min_length=1)

    # What: Per-call timeout in seconds; None disables the timeout entirely
    engine_timeout: Optional[float] = Field(default=None, gt=0)

    # What: Passed as ?refresh= on writes so they are visible to the next read
    engine_refresh: Optional[str] = Field(default=None)

    @field_validator("engine_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are joined as base + '/index/...'; a trailing slash would double up."""
        return v.rstrip("/")

    @field_validator("engine_refresh")
    @classmethod
    def validate_refresh(cls, v: Optional[str]) -> Optional[str]:
        """Ensures the refresh policy is one the engine understands."""
        if v is None or v == "":
            return None
        lower = v.lower()
        valid = {"true", "false", "wait_for"}
        if lower not in valid:
            raise ValueError(f"Invalid engine_refresh '{v}'. Must be one of: {valid}")
        return lower

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8080, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def connection_config(self) -> ConnectionConfig:
        """Freeze the engine settings into the value EngineClient is built from."""
        return ConnectionConfig(
            base_url=self.engine_url,
            username=self.engine_username,
            password=self.engine_password,
            index=self.engine_index,
            timeout=self.engine_timeout,
            refresh=self.engine_refresh,
        )

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises one ValueError listing them.
        """
        errors = []
        if not self.engine_password:
            errors.append(
                "ENGINE_PASSWORD is not set. "
                "Use the password of the engine's built-in user (e.g. 'elastic')."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance imported throughout the application
settings = Settings()
