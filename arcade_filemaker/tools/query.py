from typing import Annotated, Any

from arcade_tdk import ToolContext, tool

from arcade_filemaker.client import FileMakerClient
from arcade_filemaker.constants import FILEMAKER_SECRETS
from arcade_filemaker.enums import SortOrder
from arcade_filemaker.pagination import Paginator
from arcade_filemaker.settings import get_settings
from arcade_filemaker.tools.utils import (
    build_sort,
    record_summary,
    require_positive,
    require_text,
)
from arcade_filemaker.utils import project_fields


@tool(requires_secrets=FILEMAKER_SECRETS)
async def paginated_query(
    context: ToolContext,
    layout: Annotated[str, "Name of the FileMaker layout to query"],
    query: Annotated[
        dict | None,
        'Find criteria as field/value pairs, e.g. {"Status": "Active", "Total": ">100"}. '
        "Defaults to None (all records)",
    ] = None,
    page: Annotated[int, "Page to start from (1-based). Defaults to 1"] = 1,
    page_size: Annotated[int | None, "Records per page. Defaults to 100"] = None,
    max_pages: Annotated[int | None, "Maximum number of pages to fetch. Defaults to 10"] = None,
    sort_field: Annotated[str | None, "Field to sort by. Defaults to None"] = None,
    sort_order: Annotated[SortOrder, "Sort direction. Defaults to ascend"] = SortOrder.ASC,
    fields: Annotated[
        list[str] | None, "Fields to include in each record. Defaults to None (all fields)"
    ] = None,
) -> Annotated[dict[str, Any], "Records collected across pages with pagination details"]:
    """
    Query a FileMaker layout page by page and return every record collected.

    Pages are fetched until one comes back short or max_pages is reached. When
    pagination.has_more is true the page limit was hit first and more records exist:
    call again with page set to start_page + pages_fetched to continue.
    """
    layout = require_text(layout, "layout")
    require_positive(page, "page")
    settings = get_settings()
    page_size = require_positive(
        settings.default_page_size if page_size is None else page_size, "page_size"
    )
    max_pages = require_positive(
        settings.default_page_ceiling if max_pages is None else max_pages, "max_pages"
    )

    async with FileMakerClient.from_context(context) as client:
        paginator = Paginator(client, page_delay=settings.page_delay_seconds)
        result = await paginator.fetch_all(
            layout,
            query=query or None,
            page_size=page_size,
            page_ceiling=max_pages,
            sort=build_sort(sort_field, sort_order),
            start_page=page,
        )

    return {
        "layout": layout,
        "query": query or {},
        "pagination": {
            "start_page": result.start_page,
            "page_size": result.page_size,
            "pages_fetched": result.pages_fetched,
            "total_records": len(result.records),
            "has_more": result.has_more,
        },
        "records": [
            record_summary(record.record_id, project_fields(record.field_data, fields))
            for record in result.records
        ],
    }
