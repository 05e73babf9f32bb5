import time
from collections.abc import Awaitable, Callable
from typing import Annotated, Any

from arcade_tdk import ToolContext, tool

from arcade_filemaker.client import FileMakerClient
from arcade_filemaker.constants import (
    FILEMAKER_SECRETS,
    LOW_THROUGHPUT_RECORDS_PER_SECOND,
    SLOW_OPERATION_MS,
)
from arcade_filemaker.enums import PerformanceTest
from arcade_filemaker.exceptions import FileMakerValidationError
from arcade_filemaker.pagination import Paginator
from arcade_filemaker.settings import get_settings

PerformanceCheck = Callable[[FileMakerClient, str | None], Awaitable[dict[str, Any]]]


async def _connection_test(client: FileMakerClient, layout: str | None) -> dict[str, Any]:
    await client.authenticate()
    info = await client.get_product_info()
    return {
        "record_count": 1,
        "server": info.get("name"),
        "server_version": info.get("version"),
    }


async def _query_performance(client: FileMakerClient, layout: str | None) -> dict[str, Any]:
    settings = get_settings()
    paginator = Paginator(client, page_delay=settings.page_delay_seconds)
    page = await paginator.fetch_all(
        layout or "", page_size=settings.default_page_size, page_ceiling=1
    )
    return {"record_count": len(page.records), "layout": layout}


async def _batch_performance(client: FileMakerClient, layout: str | None) -> dict[str, Any]:
    settings = get_settings()
    paginator = Paginator(client, page_delay=settings.page_delay_seconds)
    page = await paginator.fetch_all(
        layout or "",
        page_size=settings.default_chunk_size,
        page_ceiling=settings.default_page_ceiling,
    )
    return {
        "record_count": len(page.records),
        "layout": layout,
        "pages_fetched": page.pages_fetched,
    }


LAYOUT_TESTS = frozenset({PerformanceTest.QUERY_PERFORMANCE, PerformanceTest.BATCH_PERFORMANCE})

PERFORMANCE_CHECKS: dict[PerformanceTest, PerformanceCheck] = {
    PerformanceTest.CONNECTION_TEST: _connection_test,
    PerformanceTest.QUERY_PERFORMANCE: _query_performance,
    PerformanceTest.BATCH_PERFORMANCE: _batch_performance,
}


def build_recommendations(execution_ms: float, throughput: float) -> list[str]:
    recommendations = []
    if execution_ms > SLOW_OPERATION_MS:
        recommendations.append("Consider caching frequently accessed data with ManageCache")
    if throughput < LOW_THROUGHPUT_RECORDS_PER_SECOND:
        recommendations.append("Consider batch operations to improve throughput")
    return recommendations


@tool(requires_secrets=FILEMAKER_SECRETS)
async def monitor_performance(
    context: ToolContext,
    test: Annotated[PerformanceTest, "Which check to time"],
    layout: Annotated[
        str | None, "Layout to read from. Required for query_performance and batch_performance"
    ] = None,
) -> Annotated[dict[str, Any], "Timing, throughput and tuning recommendations"]:
    """
    Time a round trip to the FileMaker Data API.

    connection_test opens a session and reads the server's product info. query_performance
    reads one page of records from a layout. batch_performance reads a layout in chunks of
    FILEMAKER_DEFAULT_CHUNK_SIZE records, up to FILEMAKER_DEFAULT_PAGE_CEILING chunks.
    """
    test = PerformanceTest(test)
    if test in LAYOUT_TESTS and not (layout and layout.strip()):
        raise FileMakerValidationError(f"'layout' is required for {test.value}")

    async with FileMakerClient.from_context(context) as client:
        started = time.perf_counter()
        outcome = await PERFORMANCE_CHECKS[test](client, layout.strip() if layout else None)
        elapsed = time.perf_counter() - started

    execution_ms = round(elapsed * 1000, 2)
    throughput = round(outcome["record_count"] / elapsed, 2) if elapsed > 0 else 0.0
    return {
        "operation": "performance_monitor",
        "test_type": test.value,
        "metrics": {
            "execution_time_ms": execution_ms,
            "throughput_records_per_second": throughput,
            "result": outcome,
        },
        "recommendations": build_recommendations(execution_ms, throughput),
    }
