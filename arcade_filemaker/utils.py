from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from arcade_filemaker.constants import FILEMAKER_TIMESTAMP_FORMAT

T = TypeVar("T")


def chunk_items(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into ordered chunks of `size`. The last chunk may be shorter."""
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def map_fields(record: dict[str, Any], field_mapping: dict[str, str] | None) -> dict[str, Any]:
    """Rename source keys to target field names. Unmapped keys are dropped."""
    if not field_mapping:
        return dict(record)
    return {
        target: record[source] for source, target in field_mapping.items() if source in record
    }


def project_fields(record: dict[str, Any], fields: list[str] | None) -> dict[str, Any]:
    if not fields:
        return dict(record)
    return {field: record[field] for field in fields if field in record}


def exact_match(value: Any) -> str:
    """Build a Data API find criterion that matches `value` exactly."""
    if isinstance(value, bool):
        return f"=={int(value)}"
    if isinstance(value, (int, float)):
        return f"=={value}"
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'=="{escaped}"'


def build_match_query(record: dict[str, Any], key_fields: list[str]) -> dict[str, str]:
    missing = [field for field in key_fields if field not in record]
    if missing:
        raise KeyError(f"Record is missing key field(s): {', '.join(missing)}")
    return {field: exact_match(record[field]) for field in key_fields}


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_filemaker_timestamp(value: datetime) -> str:
    return value.strftime(FILEMAKER_TIMESTAMP_FORMAT)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def first_present(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None
