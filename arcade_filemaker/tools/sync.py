from typing import Annotated, Any

from arcade_tdk import ToolContext, tool

from arcade_filemaker.client import FileMakerClient
from arcade_filemaker.constants import FILEMAKER_SECRETS
from arcade_filemaker.enums import ConflictStrategy
from arcade_filemaker.exceptions import FileMakerValidationError
from arcade_filemaker.pagination import Paginator
from arcade_filemaker.settings import get_settings
from arcade_filemaker.sync import SyncEngine
from arcade_filemaker.tools.utils import require_text, tracked_run
from arcade_filemaker.utils import parse_timestamp


@tool(requires_secrets=FILEMAKER_SECRETS)
async def sync_data(
    context: ToolContext,
    source_layout: Annotated[str, "Layout to read records from"],
    target_layout: Annotated[str, "Layout to write records to"],
    key_field: Annotated[str, "Field whose value identifies the same record in both layouts"],
    watermark: Annotated[
        str | None,
        "Only sync source records modified after this ISO-8601 timestamp. Use next_watermark "
        "from the previous sync. It is compared in the FileMaker Server's time zone "
        "(FILEMAKER_SERVER_TIMEZONE, UTC by default). Defaults to None (all records)",
    ] = None,
    watermark_field: Annotated[
        str | None,
        "Source field holding the modification timestamp. Defaults to ModificationTimestamp",
    ] = None,
    conflict_strategy: Annotated[
        ConflictStrategy,
        "How a matched target record is resolved. Only source_wins is available: the target "
        "is overwritten with the source fields",
    ] = ConflictStrategy.SOURCE_WINS,
    run_id: Annotated[
        str | None,
        "Optional id for this run. Pass the same id to CancelRun to stop it between records",
    ] = None,
) -> Annotated[dict[str, Any], "Added/updated counts, per-record errors and the next watermark"]:
    """
    Copy records from one FileMaker layout to another, matching on a key field.

    A source record whose key matches a target record updates it; otherwise a new target
    record is created. Failed records are reported in results.errors without stopping the
    sync. Store results.next_watermark and pass it as watermark next time to sync only
    what changed. When the sync stops early (results.has_more or results.cancelled is
    true), next_watermark is the watermark you passed in, so the records not yet read are
    picked up by the next call.
    """
    source_layout = require_text(source_layout, "source_layout")
    target_layout = require_text(target_layout, "target_layout")
    key_field = require_text(key_field, "key_field")
    if watermark:
        try:
            parse_timestamp(watermark)
        except ValueError as e:
            raise FileMakerValidationError(
                f"Invalid watermark '{watermark}'",
                additional_prompt_content=(
                    "Use an ISO-8601 timestamp such as 2024-05-01T12:00:00Z."
                ),
            ) from e
    settings = get_settings()

    with tracked_run(run_id) as token:
        async with FileMakerClient.from_context(context) as client:
            engine = SyncEngine(
                Paginator(client, page_delay=settings.page_delay_seconds),
                client,
                page_size=settings.default_page_size,
                page_ceiling=settings.export_page_ceiling,
                server_timezone=settings.server_tzinfo(),
            )
            result = await engine.run(
                source_layout,
                target_layout,
                key_field,
                watermark=watermark,
                watermark_field=watermark_field or settings.watermark_field,
                conflict_strategy=conflict_strategy,
                cancel_token=token,
            )

    return {
        "operation": "data_sync",
        "source_layout": source_layout,
        "target_layout": target_layout,
        **result.to_dict(),
    }
