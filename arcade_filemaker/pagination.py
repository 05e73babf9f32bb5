import logging
from typing import Any

from arcade_filemaker.cancellation import CancellationToken
from arcade_filemaker.models import FileMakerRecord, PageResult, PageState
from arcade_filemaker.types import RecordClient

logger = logging.getLogger(__name__)


class Paginator:
    """Collects a found set by walking it page by page.

    The loop ends when a page comes back short (or empty) or when `page_ceiling`
    pages have been fetched. In the second case `has_more` stays true and the caller
    should treat the result as possibly incomplete.
    """

    def __init__(self, client: RecordClient, page_delay: float = 0.05):
        self.client = client
        self.page_delay = page_delay

    async def fetch_all(
        self,
        layout: str,
        query: list[dict[str, Any]] | dict[str, Any] | None = None,
        page_size: int = 100,
        page_ceiling: int = 10,
        sort: list[dict[str, str]] | None = None,
        start_page: int = 1,
        cancel_token: CancellationToken | None = None,
    ) -> PageResult:
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")
        if start_page < 1:
            raise ValueError(f"start_page must be at least 1, got {start_page}")

        token = cancel_token or CancellationToken()
        state = PageState(page=start_page, page_size=page_size)
        records: list[FileMakerRecord] = []
        cancelled = False

        while state.has_more and state.pages_fetched < page_ceiling:
            if token.cancelled:
                cancelled = True
                break

            offset = (state.page - 1) * page_size
            found = await self.client.find_records(
                layout, query=query, limit=page_size, offset=offset, sort=sort
            )
            records.extend(found.records)

            state.pages_fetched += 1
            state.total_retrieved += len(found.records)
            state.has_more = len(found.records) == page_size
            state.page += 1
            logger.debug(
                "Fetched page %d of '%s' (%d records, %d total)",
                state.page - 1,
                layout,
                len(found.records),
                state.total_retrieved,
            )

            if state.has_more and state.pages_fetched < page_ceiling:
                await token.sleep(self.page_delay)

        return PageResult(
            records=records,
            pages_fetched=state.pages_fetched,
            has_more=state.has_more,
            page_size=page_size,
            start_page=start_page,
            cancelled=cancelled,
        )
