import logging
from typing import Any

from arcade_filemaker.cancellation import CancellationToken
from arcade_filemaker.enums import DuplicatePolicy, ImportMode
from arcade_filemaker.models import ImportFailure, ImportResult
from arcade_filemaker.types import RecordClient
from arcade_filemaker.utils import build_match_query, chunk_items, map_fields

logger = logging.getLogger(__name__)


class BulkImporter:
    """Maps external records onto a layout and writes them one at a time.

    Items are grouped only to pace the remote calls. A failing item is counted and
    kept (verbatim) in the error list; the run moves on to the next item.
    """

    def __init__(self, client: RecordClient, chunk_size: int = 50, chunk_delay: float = 0.1):
        self.client = client
        self.chunk_size = chunk_size
        self.chunk_delay = chunk_delay

    async def run(
        self,
        layout: str,
        items: list[Any],
        field_mapping: dict[str, str] | None = None,
        mode: ImportMode = ImportMode.CREATE,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.SKIP,
        key_fields: list[str] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ImportResult:
        mode = ImportMode(mode)
        duplicate_policy = DuplicatePolicy(duplicate_policy)
        token = cancel_token or CancellationToken()
        result = ImportResult(total=len(items))

        chunks = chunk_items(items, self.chunk_size)
        for chunk_number, chunk in enumerate(chunks, start=1):
            for item in chunk:
                if token.cancelled:
                    result.cancelled = True
                    break
                try:
                    await self._import_item(
                        layout, item, field_mapping, mode, duplicate_policy, key_fields, result
                    )
                except Exception as e:
                    logger.warning("Import into '%s' failed for one record: %s", layout, e)
                    result.failed += 1
                    result.errors.append(ImportFailure(record=item, error=str(e) or repr(e)))

            if result.cancelled:
                break
            if chunk_number < len(chunks):
                await token.sleep(self.chunk_delay)

        logger.info(
            "Imported into '%s': %d total, %d successful, %d failed, %d skipped",
            layout,
            result.total,
            result.successful,
            result.failed,
            result.skipped,
        )
        return result

    async def _import_item(
        self,
        layout: str,
        item: Any,
        field_mapping: dict[str, str] | None,
        mode: ImportMode,
        duplicate_policy: DuplicatePolicy,
        key_fields: list[str] | None,
        result: ImportResult,
    ) -> None:
        if not isinstance(item, dict):
            raise TypeError(f"Expected an object, got {type(item).__name__}")
        field_data = map_fields(item, field_mapping)

        if mode is ImportMode.CREATE:
            await self.client.create_record(layout, field_data)
            result.successful += 1
            return

        match_fields = key_fields or list(field_data)
        if not match_fields:
            raise ValueError("Record has no fields to match on")
        existing = await self.client.find_one(layout, build_match_query(field_data, match_fields))

        if existing is not None:
            await self.client.update_record(layout, existing.record_id, field_data)
            result.successful += 1
        elif duplicate_policy is DuplicatePolicy.CREATE:
            await self.client.create_record(layout, field_data)
            result.successful += 1
        else:
            result.skipped += 1
