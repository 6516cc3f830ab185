"""Environment-driven configuration with Pydantic v2."""

from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# SigV4 presigned URLs cannot outlive seven days.
MAX_EXPIRY_HOURS = 168


class Settings(BaseSettings):
    """Application settings driven entirely by environment variables.

    Built once at startup and never mutated; every component receives the
    same instance through the container.
    """

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8080, ge=1, le=65535)
    debug: bool = Field(default=False)
    # Each worker process has its own rate limiter bucket
    workers: int = Field(default=1, ge=1, le=8)

    # Authentication
    app_token: str = Field(min_length=1)

    # Object Store
    s3_bucket: str = Field(min_length=1)
    s3_region: str = Field(default="us-east-1")
    s3_endpoint: Optional[str] = Field(default=None)
    aws_access_key: Optional[str] = Field(default=None)
    aws_secret_key: Optional[str] = Field(default=None)

    # Cache Configuration
    cache_driver: Literal["redis", "sqlite"] = Field(default="sqlite")
    cache_expiry_hours: int = Field(default=24, ge=1, le=MAX_EXPIRY_HOURS)
    redis_host: str = Field(default="localhost:6379")
    redis_password: Optional[str] = Field(default=None)
    redis_db: int = Field(default=0, ge=0)
    database_url: str = Field(default="sqlite+aiosqlite:///./cache.db")
    database_echo: bool = Field(default=False)

    # Rate Limiting
    rate_limit_requests_per_second: float = Field(default=5, gt=0)
    rate_limit_burst_size: int = Field(default=10, ge=1)

    # Cleanup (SQLite backend only)
    cleanup_enabled: bool = Field(default=True)
    cleanup_interval: int = Field(default=3600, ge=10)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    @field_validator("s3_endpoint", "aws_access_key", "aws_secret_key", "redis_password")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings from .env files as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Use the async driver for plain sqlite URLs."""
        if v.startswith("sqlite:///"):
            return v.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return v

    @property
    def cache_expiry_seconds(self) -> int:
        """Shared lifetime of a cache entry and the signed URL it holds."""
        return self.cache_expiry_hours * 3600

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}/{self.redis_db}"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "frozen": True,
    }
