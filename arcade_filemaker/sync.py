import logging
from collections.abc import Awaitable, Callable
from datetime import timezone, tzinfo
from typing import Any

from arcade_filemaker.cancellation import CancellationToken
from arcade_filemaker.enums import ConflictStrategy
from arcade_filemaker.models import FileMakerRecord, SyncFailure, SyncResult
from arcade_filemaker.pagination import Paginator
from arcade_filemaker.types import RecordClient
from arcade_filemaker.utils import (
    exact_match,
    parse_timestamp,
    to_filemaker_timestamp,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

# Resolves a matched pair into the field data written to the target record.
ConflictResolver = Callable[[FileMakerRecord, FileMakerRecord], Awaitable[dict[str, Any]]]


async def _source_wins(source: FileMakerRecord, target: FileMakerRecord) -> dict[str, Any]:
    return dict(source.field_data)


CONFLICT_RESOLVERS: dict[ConflictStrategy, ConflictResolver] = {
    ConflictStrategy.SOURCE_WINS: _source_wins,
}


def build_watermark_query(
    watermark: str | None, watermark_field: str, server_timezone: tzinfo = timezone.utc
) -> dict[str, str] | None:
    """Find criterion for records modified after `watermark`.

    FileMaker timestamps carry no zone, so the watermark is rendered in the
    server's local time.
    """
    if not watermark:
        return None
    since = parse_timestamp(watermark).astimezone(server_timezone)
    return {watermark_field: f">{to_filemaker_timestamp(since)}"}


class SyncEngine:
    """One-way sync from a source layout into a target layout, matched on a key field."""

    def __init__(
        self,
        paginator: Paginator,
        client: RecordClient,
        page_size: int = 100,
        page_ceiling: int = 1000,
        server_timezone: tzinfo = timezone.utc,
    ):
        self.paginator = paginator
        self.client = client
        self.page_size = page_size
        self.page_ceiling = page_ceiling
        self.server_timezone = server_timezone

    async def run(
        self,
        source_layout: str,
        target_layout: str,
        key_field: str,
        watermark: str | None = None,
        watermark_field: str = "ModificationTimestamp",
        conflict_strategy: ConflictStrategy = ConflictStrategy.SOURCE_WINS,
        cancel_token: CancellationToken | None = None,
    ) -> SyncResult:
        conflict_strategy = ConflictStrategy(conflict_strategy)
        resolve = CONFLICT_RESOLVERS[conflict_strategy]
        token = cancel_token or CancellationToken()

        page = await self.paginator.fetch_all(
            source_layout,
            query=build_watermark_query(watermark, watermark_field, self.server_timezone),
            page_size=self.page_size,
            page_ceiling=self.page_ceiling,
            cancel_token=token,
        )
        result = SyncResult(
            conflict_strategy=conflict_strategy.value,
            has_more=page.has_more,
            cancelled=page.cancelled,
        )

        for source in page.records:
            if token.cancelled:
                result.cancelled = True
                break
            result.total_processed += 1
            try:
                await self._sync_record(source, target_layout, key_field, resolve, result)
            except Exception as e:
                logger.warning(
                    "Sync of record %s from '%s' failed: %s", source.record_id, source_layout, e
                )
                result.errors.append(
                    SyncFailure(record=source.field_data, error=str(e) or repr(e))
                )

        if result.has_more or result.cancelled:
            # Unread source records must still match the next run
            result.next_watermark = watermark
            logger.warning(
                "Sync of '%s' stopped early; keeping the previous watermark", source_layout
            )
        else:
            result.next_watermark = utc_now_iso()
        logger.info(
            "Synced '%s' -> '%s': %d added, %d updated, %d errors",
            source_layout,
            target_layout,
            result.added,
            result.updated,
            len(result.errors),
        )
        return result

    async def _sync_record(
        self,
        source: FileMakerRecord,
        target_layout: str,
        key_field: str,
        resolve: ConflictResolver,
        result: SyncResult,
    ) -> None:
        key_value = source.field_data.get(key_field)
        if key_value is None or key_value == "":
            raise ValueError(f"Source record has no value for key field '{key_field}'")

        existing = await self.client.find_one(target_layout, {key_field: exact_match(key_value)})
        if existing is not None:
            field_data = await resolve(source, existing)
            await self.client.update_record(target_layout, existing.record_id, field_data)
            result.updated += 1
        else:
            await self.client.create_record(target_layout, dict(source.field_data))
            result.added += 1
