"""
FileMaker toolkit settings.

Tuning knobs for pacing, pagination and the client-side protection layer. Connection
credentials are tool secrets and are not read from here.
"""

from datetime import timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class FileMakerSettings(BaseSettings):
    """Settings loaded from ``FILEMAKER_*`` environment variables."""

    request_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single Data API request",
        gt=0,
        le=600,
    )
    verify_ssl: bool = Field(
        default=True,
        description="Verify the FileMaker Server TLS certificate",
    )
    chunk_delay_seconds: float = Field(
        default=0.1,
        description="Pause between chunks in batch and import runs",
        ge=0,
        le=60,
    )
    page_delay_seconds: float = Field(
        default=0.05,
        description="Pause between pages in paginated reads",
        ge=0,
        le=60,
    )
    default_chunk_size: int = Field(
        default=50,
        description="Records per chunk for batch operations",
        ge=1,
        le=1000,
    )
    import_chunk_size: int = Field(
        default=50,
        description="Records per pacing group for bulk imports",
        ge=1,
        le=1000,
    )
    default_page_size: int = Field(
        default=100,
        description="Records per page for paginated reads",
        ge=1,
        le=5000,
    )
    default_page_ceiling: int = Field(
        default=10,
        description="Maximum pages fetched by a paginated query",
        ge=1,
        le=10000,
    )
    export_page_ceiling: int = Field(
        default=1000,
        description="Maximum pages fetched by exports and syncs",
        ge=1,
        le=100000,
    )
    default_rate_limit: int = Field(
        default=100,
        description="Request limit for operations without a configured limit",
        ge=1,
    )
    default_rate_window_seconds: float = Field(
        default=60.0,
        description="Sliding window used by the rate limiter",
        gt=0,
    )
    default_cache_ttl_seconds: float = Field(
        default=300.0,
        description="Time to live for cache entries when none is given",
        gt=0,
    )
    watermark_field: str = Field(
        default="ModificationTimestamp",
        description="Field compared against the sync watermark",
    )
    server_timezone: str = Field(
        default="UTC",
        description="IANA zone FileMaker Server stores timestamps in, e.g. 'Europe/Berlin'",
    )

    model_config = {"env_prefix": "FILEMAKER_"}

    @field_validator("watermark_field")
    @classmethod
    def validate_watermark_field(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("watermark_field cannot be empty")
        return v.strip()

    @field_validator("server_timezone")
    @classmethod
    def validate_server_timezone(cls, v: str) -> str:
        v = v.strip()
        if v.upper() == "UTC":
            return "UTC"
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    def server_tzinfo(self) -> tzinfo:
        if self.server_timezone == "UTC":
            return timezone.utc
        return ZoneInfo(self.server_timezone)


@lru_cache(maxsize=1)
def get_settings() -> FileMakerSettings:
    return FileMakerSettings()
