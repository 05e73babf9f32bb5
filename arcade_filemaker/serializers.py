import csv
import io
import json
import xml.etree.ElementTree as ET
from typing import Any

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def collect_columns(records: list[dict[str, Any]], fields: list[str] | None = None) -> list[str]:
    """Requested fields, or every field name in the order it is first seen."""
    if fields:
        return list(fields)
    columns: dict[str, None] = {}
    for record in records:
        for key in record:
            columns.setdefault(key, None)
    return list(columns)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def to_csv(records: list[dict[str, Any]], fields: list[str] | None = None) -> str:
    columns = collect_columns(records, fields)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for record in records:
        writer.writerow([_cell(record.get(column)) for column in columns])
    return buffer.getvalue()


def to_xml(
    records: list[dict[str, Any]],
    layout: str,
    fields: list[str] | None = None,
    record_ids: list[str] | None = None,
) -> str:
    root = ET.Element("records", {"layout": layout, "count": str(len(records))})
    for position, record in enumerate(records):
        attributes = {}
        if record_ids is not None:
            attributes["recordId"] = record_ids[position]
        element = ET.SubElement(root, "record", attributes)
        for column in collect_columns([record], fields):
            if column not in record:
                continue
            field = ET.SubElement(element, "field", {"name": column})
            field.text = _cell(record[column])
    return XML_DECLARATION + ET.tostring(root, encoding="unicode")


def payload_size(data: dict[str, Any] | str) -> int:
    text = data if isinstance(data, str) else json.dumps(data, default=str)
    return len(text.encode("utf-8"))
