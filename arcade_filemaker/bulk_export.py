import logging
from collections.abc import Callable
from typing import Any

from arcade_filemaker.cancellation import CancellationToken
from arcade_filemaker.enums import ExportFormat
from arcade_filemaker.models import ExportResult, FileMakerRecord
from arcade_filemaker.pagination import Paginator
from arcade_filemaker.serializers import payload_size, to_csv, to_xml
from arcade_filemaker.utils import project_fields, utc_now_iso

logger = logging.getLogger(__name__)

Serializer = Callable[
    [list[FileMakerRecord], list[dict[str, Any]], str, list[str] | None, bool], Any
]


def _serialize_json(
    records: list[FileMakerRecord],
    rows: list[dict[str, Any]],
    layout: str,
    fields: list[str] | None,
    include_metadata: bool,
) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if include_metadata:
        data["metadata"] = {
            "export_date": utc_now_iso(),
            "layout": layout,
            "record_count": len(rows),
            "fields": fields or "all",
        }
    data["records"] = [
        {"recordId": record.record_id, "fieldData": row}
        for record, row in zip(records, rows, strict=True)
    ]
    return data


def _serialize_csv(
    records: list[FileMakerRecord],
    rows: list[dict[str, Any]],
    layout: str,
    fields: list[str] | None,
    include_metadata: bool,
) -> str:
    return to_csv(rows, fields)


def _serialize_xml(
    records: list[FileMakerRecord],
    rows: list[dict[str, Any]],
    layout: str,
    fields: list[str] | None,
    include_metadata: bool,
) -> str:
    return to_xml(rows, layout, fields, record_ids=[record.record_id for record in records])


SERIALIZERS: dict[ExportFormat, Serializer] = {
    ExportFormat.JSON: _serialize_json,
    ExportFormat.CSV: _serialize_csv,
    ExportFormat.XML: _serialize_xml,
}


class BulkExporter:
    """Reads a whole found set and serializes it as JSON, CSV or XML."""

    def __init__(self, paginator: Paginator, page_size: int = 100, page_ceiling: int = 1000):
        self.paginator = paginator
        self.page_size = page_size
        self.page_ceiling = page_ceiling

    async def run(
        self,
        layout: str,
        export_format: ExportFormat = ExportFormat.JSON,
        query: list[dict[str, Any]] | dict[str, Any] | None = None,
        fields: list[str] | None = None,
        include_metadata: bool = False,
        cancel_token: CancellationToken | None = None,
    ) -> ExportResult:
        export_format = ExportFormat(export_format)
        page = await self.paginator.fetch_all(
            layout,
            query=query,
            page_size=self.page_size,
            page_ceiling=self.page_ceiling,
            cancel_token=cancel_token,
        )
        if page.has_more:
            logger.warning(
                "Export of '%s' stopped at %d pages; the result may be incomplete",
                layout,
                page.pages_fetched,
            )

        rows = [project_fields(record.field_data, fields) for record in page.records]
        data = SERIALIZERS[export_format](page.records, rows, layout, fields, include_metadata)

        return ExportResult(
            layout=layout,
            format=export_format.value,
            record_count=len(rows),
            data=data,
            data_size=payload_size(data),
            has_more=page.has_more,
            cancelled=page.cancelled,
        )
