from typing import Annotated, Any

from arcade_tdk import ToolContext, tool

from arcade_filemaker.bulk_export import BulkExporter
from arcade_filemaker.bulk_import import BulkImporter
from arcade_filemaker.client import FileMakerClient
from arcade_filemaker.constants import FILEMAKER_SECRETS
from arcade_filemaker.enums import DuplicatePolicy, ExportFormat, ImportMode
from arcade_filemaker.exceptions import FileMakerValidationError
from arcade_filemaker.pagination import Paginator
from arcade_filemaker.settings import get_settings
from arcade_filemaker.tools.utils import require_text, tracked_run


def _validate_field_mapping(field_mapping: dict | None) -> dict[str, str] | None:
    if not field_mapping:
        return None
    invalid = [
        source
        for source, target in field_mapping.items()
        if not isinstance(target, str) or not target.strip()
    ]
    if invalid:
        raise FileMakerValidationError(
            f"field_mapping targets must be non-empty field names (check: {', '.join(invalid)})"
        )
    return {str(source): target for source, target in field_mapping.items()}


@tool(requires_secrets=FILEMAKER_SECRETS)
async def bulk_import(
    context: ToolContext,
    layout: Annotated[str, "Name of the FileMaker layout to import into"],
    records: Annotated[list[dict], "External records to import, one object per record"],
    field_mapping: Annotated[
        dict | None,
        'Maps source keys to FileMaker field names, e.g. {"email": "Email Address"}. '
        "Keys not in the mapping are dropped. Defaults to None (records used as-is)",
    ] = None,
    import_mode: Annotated[
        ImportMode,
        "'create' always creates. 'update_or_create' updates the matching record when one "
        "exists. Defaults to create",
    ] = ImportMode.CREATE,
    duplicate_policy: Annotated[
        DuplicatePolicy,
        "In update_or_create mode, what to do when no matching record exists: 'create' a new "
        "one or 'skip' it ('update' has nothing to update and also skips). Defaults to skip",
    ] = DuplicatePolicy.SKIP,
    key_fields: Annotated[
        list[str] | None,
        "FileMaker fields used to find the matching record in update_or_create mode. "
        "Defaults to None (all mapped fields)",
    ] = None,
    run_id: Annotated[
        str | None,
        "Optional id for this run. Pass the same id to CancelRun to stop it between records",
    ] = None,
) -> Annotated[dict[str, Any], "Import counts, per-record errors and success/failure rates"]:
    """
    Import many external records into a FileMaker layout.

    Each record is mapped to FileMaker field names and written individually. Records that
    fail are counted and returned with their error, and the import carries on with the
    next record, so always check results.failed and results.errors.
    """
    layout = require_text(layout, "layout")
    mapping = _validate_field_mapping(field_mapping)
    settings = get_settings()

    with tracked_run(run_id) as token:
        async with FileMakerClient.from_context(context) as client:
            importer = BulkImporter(
                client,
                chunk_size=settings.import_chunk_size,
                chunk_delay=settings.chunk_delay_seconds,
            )
            result = await importer.run(
                layout,
                records,
                field_mapping=mapping,
                mode=import_mode,
                duplicate_policy=duplicate_policy,
                key_fields=key_fields or None,
                cancel_token=token,
            )

    return {
        "operation": "bulk_import",
        "layout": layout,
        "import_mode": ImportMode(import_mode).value,
        **result.to_dict(),
    }


@tool(requires_secrets=FILEMAKER_SECRETS)
async def bulk_export(
    context: ToolContext,
    layout: Annotated[str, "Name of the FileMaker layout to export"],
    export_format: Annotated[ExportFormat, "Output format. Defaults to json"] = ExportFormat.JSON,
    query: Annotated[
        dict | None,
        'Find criteria as field/value pairs, e.g. {"Region": "West"}. Defaults to None '
        "(all records)",
    ] = None,
    fields: Annotated[
        list[str] | None, "Fields to export. Defaults to None (all fields)"
    ] = None,
    include_metadata: Annotated[
        bool, "Add export date, layout, record count and field list (json only)"
    ] = False,
    run_id: Annotated[
        str | None,
        "Optional id for this run. Pass the same id to CancelRun to stop it between pages",
    ] = None,
) -> Annotated[dict[str, Any], "The serialized export with record count and payload size"]:
    """
    Export every matching record from a FileMaker layout as JSON, CSV or XML.

    All pages of the found set are read before serializing. If has_more is true the export
    hit its page limit and is incomplete.
    """
    layout = require_text(layout, "layout")
    settings = get_settings()

    with tracked_run(run_id) as token:
        async with FileMakerClient.from_context(context) as client:
            exporter = BulkExporter(
                Paginator(client, page_delay=settings.page_delay_seconds),
                page_size=settings.default_page_size,
                page_ceiling=settings.export_page_ceiling,
            )
            result = await exporter.run(
                layout,
                export_format=export_format,
                query=query or None,
                fields=fields or None,
                include_metadata=include_metadata,
                cancel_token=token,
            )

    return {"operation": "bulk_export", **result.model_dump()}
