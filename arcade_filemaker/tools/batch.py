from typing import Annotated, Any

from arcade_tdk import ToolContext, tool

from arcade_filemaker.batch import BatchExecutor, resolve_operation
from arcade_filemaker.client import FileMakerClient
from arcade_filemaker.constants import FILEMAKER_SECRETS
from arcade_filemaker.enums import BatchOperation
from arcade_filemaker.settings import get_settings
from arcade_filemaker.tools.utils import require_positive, require_text, tracked_run


@tool(requires_secrets=FILEMAKER_SECRETS)
async def batch_operations(
    context: ToolContext,
    operation: Annotated[BatchOperation, "The operation to apply to every record"],
    layout: Annotated[str, "Name of the FileMaker layout the records live on"],
    records: Annotated[
        list[dict],
        "Records to process. For 'create' each item is the field data (or "
        '{"fieldData": {...}}). For \'update\' use {"recordId": "12", "fieldData": {...}}. '
        'For \'delete\' use {"recordId": "12"}',
    ],
    chunk_size: Annotated[
        int | None, "Number of records processed per chunk. Defaults to 50"
    ] = None,
    run_id: Annotated[
        str | None,
        "Optional id for this run. Pass the same id to CancelRun to stop it between records",
    ] = None,
) -> Annotated[dict[str, Any], "Per-chunk outcomes and a summary of successes and errors"]:
    """
    Create, update or delete many FileMaker records in paced chunks.

    Records are processed one at a time in their original order. A record that fails does
    not stop the run: it is reported in its chunk's errors and processing continues. A chunk
    is successful only when every record in it succeeded.
    """
    operation = resolve_operation(operation)
    layout = require_text(layout, "layout")
    settings = get_settings()
    chunk_size = require_positive(
        settings.default_chunk_size if chunk_size is None else chunk_size, "chunk_size"
    )

    with tracked_run(run_id) as token:
        async with FileMakerClient.from_context(context) as client:
            executor = BatchExecutor(client, chunk_delay=settings.chunk_delay_seconds)
            report = await executor.run(
                operation, layout, records, chunk_size=chunk_size, cancel_token=token
            )

    return {"layout": layout, **report.to_dict()}
