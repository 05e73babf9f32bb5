from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field


def format_rate(part: int, total: int) -> str:
    if total == 0:
        return "0.00%"
    return f"{part / total * 100:.2f}%"


class FileMakerMessage(BaseModel):
    code: str
    message: str = ""


class FileMakerRecord(BaseModel):
    """A record as returned by the Data API."""

    record_id: str
    mod_id: str | None = None
    field_data: dict[str, Any] = Field(default_factory=dict)
    portal_data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "FileMakerRecord":
        return cls(
            record_id=str(data.get("recordId", "")),
            mod_id=str(data["modId"]) if data.get("modId") is not None else None,
            field_data=data.get("fieldData") or {},
            portal_data=data.get("portalData") or {},
        )


class FoundSet(BaseModel):
    records: list[FileMakerRecord] = Field(default_factory=list)
    found_count: int = 0
    returned_count: int = 0


class BatchItemResult(BaseModel):
    index: int
    success: bool
    record_id: str | None = None
    error: str | None = None


class BatchOutcome(BaseModel):
    chunk_index: int = Field(..., ge=1)
    item_count: int
    success: bool
    errors: list[str] = Field(default_factory=list)
    items: list[BatchItemResult] = Field(default_factory=list)


class BatchReport(BaseModel):
    operation: str
    total_records: int
    total_chunks: int
    outcomes: list[BatchOutcome] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def successful_chunks(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed_chunks(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    @property
    def total_errors(self) -> int:
        return sum(len(outcome.errors) for outcome in self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "total_records": self.total_records,
            "total_chunks": self.total_chunks,
            "results": [outcome.model_dump() for outcome in self.outcomes],
            "summary": {
                "successful_chunks": self.successful_chunks,
                "failed_chunks": self.failed_chunks,
                "total_errors": self.total_errors,
            },
            "cancelled": self.cancelled,
        }


class PageState(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(..., ge=1)
    total_retrieved: int = 0
    has_more: bool = True
    pages_fetched: int = 0


class PageResult(BaseModel):
    records: list[FileMakerRecord] = Field(default_factory=list)
    pages_fetched: int = 0
    has_more: bool = False
    page_size: int
    start_page: int = 1
    cancelled: bool = False


class ImportFailure(BaseModel):
    record: Any
    error: str


class ImportResult(BaseModel):
    total: int
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[ImportFailure] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def success_rate(self) -> str:
        return format_rate(self.successful, self.total)

    @property
    def failure_rate(self) -> str:
        return format_rate(self.failed, self.total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": self.model_dump(),
            "summary": {"success_rate": self.success_rate, "failure_rate": self.failure_rate},
        }


class ExportResult(BaseModel):
    layout: str
    format: str
    record_count: int
    data: dict[str, Any] | str
    data_size: int
    has_more: bool = False
    cancelled: bool = False


class SyncFailure(BaseModel):
    record: dict[str, Any]
    error: str


class SyncResult(BaseModel):
    added: int = 0
    updated: int = 0
    errors: list[SyncFailure] = Field(default_factory=list)
    total_processed: int = 0
    next_watermark: str | None = None
    conflict_strategy: str
    has_more: bool = False
    cancelled: bool = False

    @property
    def success_rate(self) -> str:
        return format_rate(self.added + self.updated, self.total_processed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": self.model_dump(),
            "summary": {"success_rate": self.success_rate},
        }


@dataclass
class CacheEntry:
    value: Any
    ttl_seconds: float
    created_at: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl_seconds


@dataclass
class CacheLookup:
    found: bool
    value: Any = None


@dataclass
class RequestRecord:
    operation: str
    timestamp: float


class RateLimitStatus(BaseModel):
    operation: str
    limited: bool
    count: int
    limit: int
    remaining: int
    wait_seconds: float | None = None
    recommendation: str | None = None
