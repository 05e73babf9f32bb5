from typing import Annotated, Any

from arcade_tdk import ToolContext, tool

from arcade_filemaker.exceptions import FileMakerValidationError
from arcade_filemaker.settings import get_settings
from arcade_filemaker.state import get_rate_limiter
from arcade_filemaker.tools.utils import require_positive, require_text


@tool
async def check_rate_limit(
    context: ToolContext,
    operation: Annotated[
        str,
        "Name of the operation about to run, e.g. 'find_records' or 'create_record'",
    ],
    time_window_seconds: Annotated[
        float | None, "Length of the sliding window in seconds. Defaults to 60"
    ] = None,
    max_requests: Annotated[
        int | None,
        "Set the request limit for this operation before checking. Defaults to None "
        "(keep the configured limit)",
    ] = None,
) -> Annotated[dict[str, Any], "Whether the operation is over its limit and how long to wait"]:
    """
    Record a request for an operation and report whether it is over its rate limit.

    This is advisory: nothing is blocked. When rate_limited is true, wait the suggested
    number of seconds before calling FileMaker again for that operation.
    """
    operation = require_text(operation, "operation")
    window = (
        time_window_seconds
        if time_window_seconds is not None
        else get_settings().default_rate_window_seconds
    )
    if window <= 0:
        raise FileMakerValidationError(f"'time_window_seconds' must be positive, got {window}")

    limiter = get_rate_limiter()
    if max_requests is not None:
        limiter.configure(operation, require_positive(max_requests, "max_requests"))

    status = limiter.check(operation, window)
    response: dict[str, Any] = {
        "operation": "rate_limit_handler",
        "checked_operation": status.operation,
        "rate_limited": status.limited,
        "request_count": status.count,
        "limit": status.limit,
        "time_window_seconds": window,
    }
    if status.limited:
        response["wait_seconds"] = status.wait_seconds
        response["recommendation"] = status.recommendation
    else:
        response["remaining_requests"] = status.remaining
    return response
