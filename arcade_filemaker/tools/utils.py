import contextlib
from collections.abc import Iterator
from typing import Any

from arcade_filemaker.cancellation import CancellationToken
from arcade_filemaker.enums import SortOrder
from arcade_filemaker.exceptions import FileMakerValidationError
from arcade_filemaker.state import get_run_registry


def require_text(value: str | None, name: str) -> str:
    if value is None or not str(value).strip():
        raise FileMakerValidationError(f"'{name}' is required and cannot be empty")
    return str(value).strip()


def require_positive(value: int, name: str) -> int:
    if value < 1:
        raise FileMakerValidationError(f"'{name}' must be at least 1, got {value}")
    return value


def build_sort(sort_field: str | None, sort_order: SortOrder) -> list[dict[str, str]] | None:
    if not sort_field:
        return None
    return [{"fieldName": sort_field, "sortOrder": SortOrder(sort_order).value}]


def record_summary(record_id: str, field_data: dict[str, Any]) -> dict[str, Any]:
    return {"recordId": record_id, "fieldData": field_data}


@contextlib.contextmanager
def tracked_run(run_id: str | None) -> Iterator[CancellationToken]:
    """Register the run so `cancel_run` can stop it between items."""
    registry = get_run_registry()
    run_id = run_id.strip() if run_id else None
    if run_id and run_id in registry.active_runs():
        raise FileMakerValidationError(
            f"A run with id '{run_id}' is already in progress",
            additional_prompt_content="Choose a different run_id or cancel the active run.",
        )
    with registry.track(run_id) as token:
        yield token
