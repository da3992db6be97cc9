# etcd2s3/config.py
"""
Centralized configuration with validation.

Uses pydantic-settings to load and validate environment variables (and an
optional .env file) once per process. CLI flags override individual fields
via ``Settings.model_copy(update=...)``.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from etcd2s3.constants import PolicyDefaults, StoreDefaults
from etcd2s3.models import RetentionPolicy
from etcd2s3.retention.names import CompressionAlgorithm


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Local store
    SNAPSHOT_DIR: str = Field(
        default=StoreDefaults.SNAPSHOT_DIR,
        description="Directory holding local snapshots",
    )

    # Remote store
    S3_BUCKET: str | None = Field(
        default=None,
        description="S3 bucket for snapshots. Unset disables the remote store.",
    )
    S3_PREFIX: str = Field(
        default="",
        description="Key prefix snapshots live under",
    )
    S3_REGION: str = Field(
        default=StoreDefaults.S3_REGION,
        description="AWS region",
    )
    S3_ENDPOINT_URL: str | None = Field(
        default=None,
        description="Custom endpoint for S3-compatible services (MinIO, Ceph RGW)",
    )
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None
    AWS_SESSION_TOKEN: str | None = None

    # Retention policy
    POLICY_KEEP_LAST: int = Field(
        default=PolicyDefaults.KEEP_LAST,
        description="Always keep this many newest snapshots (0 disables)",
    )
    POLICY_KEEP_LAST_HOURS: int = Field(default=PolicyDefaults.KEEP_LAST_HOURS)
    POLICY_KEEP_LAST_DAYS: int = Field(default=PolicyDefaults.KEEP_LAST_DAYS)
    POLICY_KEEP_LAST_WEEKS: int = Field(default=PolicyDefaults.KEEP_LAST_WEEKS)
    POLICY_KEEP_LAST_MONTHS: int = Field(default=PolicyDefaults.KEEP_LAST_MONTHS)
    POLICY_KEEP_LAST_YEARS: int = Field(default=PolicyDefaults.KEEP_LAST_YEARS)
    POLICY_REMOVE_LOCAL: bool = Field(
        default=False,
        description="Remove the local copy once it is uploaded",
    )

    # Compression
    COMPRESSION: str = Field(
        default=CompressionAlgorithm.ZSTD.value,
        description="Compression for new snapshots: none, gzip, bzip2, lz4, zstd",
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR",
    )
    LOG_FORMAT: str = Field(
        default="console",
        description="Log format: console or json",
    )

    @field_validator("COMPRESSION")
    @classmethod
    def validate_compression(cls, v: str) -> str:
        return CompressionAlgorithm.parse(v).value

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.strip().lower()
        if fmt not in ("console", "json"):
            raise ValueError(f"Invalid log format: {v}. Available: console, json")
        return fmt

    @property
    def s3_enabled(self) -> bool:
        return bool(self.S3_BUCKET)

    def retention_policy(self) -> RetentionPolicy:
        return RetentionPolicy(
            keep_last=self.POLICY_KEEP_LAST,
            keep_hours=self.POLICY_KEEP_LAST_HOURS,
            keep_days=self.POLICY_KEEP_LAST_DAYS,
            keep_weeks=self.POLICY_KEEP_LAST_WEEKS,
            keep_months=self.POLICY_KEEP_LAST_MONTHS,
            keep_years=self.POLICY_KEEP_LAST_YEARS,
        )

    def compression_algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.parse(self.COMPRESSION)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings. Call at startup to validate config."""
    return Settings()
