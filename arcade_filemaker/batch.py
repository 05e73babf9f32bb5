import logging
from collections.abc import Awaitable, Callable
from typing import Any

from arcade_filemaker.cancellation import CancellationToken
from arcade_filemaker.enums import BatchOperation
from arcade_filemaker.exceptions import FileMakerValidationError
from arcade_filemaker.models import BatchItemResult, BatchOutcome, BatchReport
from arcade_filemaker.types import RecordClient
from arcade_filemaker.utils import chunk_items, first_present

logger = logging.getLogger(__name__)

ItemHandler = Callable[[RecordClient, str, dict[str, Any]], Awaitable[str | None]]


def _record_id(item: dict[str, Any]) -> str:
    record_id = first_present(item, "recordId", "record_id")
    if record_id is None or str(record_id) == "":
        raise ValueError("Item is missing 'recordId'")
    return str(record_id)


def _field_data(item: dict[str, Any], required: bool) -> dict[str, Any]:
    field_data = first_present(item, "fieldData", "field_data")
    if field_data is None:
        if required:
            raise ValueError("Item is missing 'fieldData'")
        return item
    if not isinstance(field_data, dict):
        raise TypeError("'fieldData' must be an object")
    return field_data


async def _create(client: RecordClient, layout: str, item: dict[str, Any]) -> str | None:
    return await client.create_record(layout, _field_data(item, required=False))


async def _update(client: RecordClient, layout: str, item: dict[str, Any]) -> str | None:
    record_id = _record_id(item)
    await client.update_record(layout, record_id, _field_data(item, required=True))
    return record_id


async def _delete(client: RecordClient, layout: str, item: dict[str, Any]) -> str | None:
    record_id = _record_id(item)
    await client.delete_record(layout, record_id)
    return record_id


ITEM_HANDLERS: dict[BatchOperation, ItemHandler] = {
    BatchOperation.CREATE: _create,
    BatchOperation.UPDATE: _update,
    BatchOperation.DELETE: _delete,
}


def resolve_operation(operation: BatchOperation | str) -> BatchOperation:
    try:
        return BatchOperation(operation)
    except ValueError:
        supported = ", ".join(op.value for op in BatchOperation)
        raise FileMakerValidationError(
            f"Unsupported batch operation: {operation}",
            additional_prompt_content=f"Use one of: {supported}.",
        ) from None


class BatchExecutor:
    """Runs create, update or delete over many records in paced chunks."""

    def __init__(self, client: RecordClient, chunk_delay: float = 0.1):
        self.client = client
        self.chunk_delay = chunk_delay

    async def run(
        self,
        operation: BatchOperation | str,
        layout: str,
        items: list[dict[str, Any]],
        chunk_size: int = 50,
        cancel_token: CancellationToken | None = None,
    ) -> BatchReport:
        operation = resolve_operation(operation)
        if chunk_size < 1:
            raise FileMakerValidationError(f"chunk_size must be at least 1, got {chunk_size}")

        handler = ITEM_HANDLERS[operation]
        token = cancel_token or CancellationToken()
        chunks = chunk_items(items, chunk_size)
        report = BatchReport(
            operation=operation.value, total_records=len(items), total_chunks=len(chunks)
        )

        position = 0
        for chunk_number, chunk in enumerate(chunks, start=1):
            if token.cancelled:
                report.cancelled = True
                break

            outcome = BatchOutcome(chunk_index=chunk_number, item_count=len(chunk), success=True)
            for item in chunk:
                if token.cancelled:
                    report.cancelled = True
                    break
                outcome.items.append(await self._run_item(handler, layout, item, position))
                position += 1

            failures = [result for result in outcome.items if not result.success]
            outcome.errors = [result.error or "Unknown error" for result in failures]
            outcome.success = not failures and len(outcome.items) == outcome.item_count
            report.outcomes.append(outcome)

            if report.cancelled:
                break
            if chunk_number < len(chunks):
                logger.debug("Chunk %d/%d done, pausing", chunk_number, len(chunks))
                await token.sleep(self.chunk_delay)

        logger.info(
            "Batch %s on '%s': %d/%d chunks succeeded, %d item errors",
            operation.value,
            layout,
            report.successful_chunks,
            len(report.outcomes),
            report.total_errors,
        )
        return report

    async def _run_item(
        self, handler: ItemHandler, layout: str, item: Any, position: int
    ) -> BatchItemResult:
        try:
            if not isinstance(item, dict):
                raise TypeError(f"Expected an object, got {type(item).__name__}")
            record_id = await handler(self.client, layout, item)
        except Exception as e:
            logger.warning("Batch item %d on '%s' failed: %s", position, layout, e)
            return BatchItemResult(index=position, success=False, error=str(e) or repr(e))
        return BatchItemResult(index=position, success=True, record_id=record_id)
