"""Translation between API documents and documents-table rows.

Three steps, applied in this order on the way in and reversed on the way out:

1. ``to_storage_form`` normalizes list fields and serializes ``data`` (idempotent,
   keeps the external field names).
2. ``to_column_values`` renames fields to columns and encodes values for their
   CQL types.
3. ``from_storage_row`` turns a fetched row back into an external document.
"""

import json
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from trace_docs.errors import ValidationError
from trace_docs.logger import get_logger
from trace_docs.models.document import COLUMNS_BY_FIELD, COLUMNS_BY_NAME, LIST_FIELDS, DocumentColumn

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _dump_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def _normalize_list(field: str, value: Any) -> list[str]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("List field is not valid JSON, storing as a single value", field=field)
            value = [value]

    if not isinstance(value, (list, tuple)):
        value = [value]

    return [item if isinstance(item, str) else _dump_json(item) for item in value]


def to_storage_form(document: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a draft for the fixed-column schema.

    ``groupedBy``, ``groupedAssets`` and ``idExternal`` always come out as lists
    of strings; a string input is parsed as a JSON array and wrapped as a single
    element when parsing fails. ``data`` is serialized to a JSON string unless it
    already is one. Nothing else is touched and the input is not mutated.
    """
    record = dict(document)

    for field in LIST_FIELDS:
        value = record.get(field)
        if value is not None:
            record[field] = _normalize_list(field, value)

    data = record.get("data")
    if data is not None and not isinstance(data, str):
        record["data"] = _dump_json(data)

    return record


def _encode_value(column: DocumentColumn, value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if column.is_decimal and not isinstance(value, Decimal):
        if isinstance(value, bool):
            raise ValidationError(f"{column.field} must be a number")
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise ValidationError(f"{column.field} must be a number") from exc
    if column.is_timestamp and isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError as exc:
            raise ValidationError(f"{column.field} must be an ISO-8601 timestamp") from exc
    return value


def to_column_values(record: Mapping[str, Any]) -> dict[str, Any]:
    """Map a storage-form record to ``{column: value}``.

    ``None`` values are left out (an absent column reads back as null). A field
    the documents table does not know is rejected rather than dropped.
    """
    values: dict[str, Any] = {}
    for field, value in record.items():
        column = COLUMNS_BY_FIELD.get(field)
        if column is None:
            raise ValidationError(f"Unknown document field: {field}")
        if value is None:
            continue
        values[column.column] = _encode_value(column, value)
    return values


def to_update_values(updates: Mapping[str, Any]) -> dict[str, Any]:
    """Map an update request to ``{column: value}``.

    Known fields go through the column table; anything else is taken as a
    column name as-is, as long as it is a plain CQL identifier.
    """
    values: dict[str, Any] = {}
    for key, value in updates.items():
        if value is None:
            continue
        column = COLUMNS_BY_FIELD.get(key)
        if column is None:
            if not _IDENTIFIER.match(key):
                raise ValidationError(f"Invalid field name: {key}")
            values[key] = value
            continue
        if column.is_list:
            value = _normalize_list(key, value)
        elif key == "data" and not isinstance(value, str):
            value = _dump_json(value)
        values[column.column] = _encode_value(column, value)
    return values


def _decode_value(column: DocumentColumn, value: Any) -> Any:
    if column.field == "data" and isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("Stored data column is not valid JSON, returning raw text")
            return value
    if column.is_decimal and isinstance(value, Decimal):
        return float(value)
    if column.is_timestamp and isinstance(value, datetime) and value.tzinfo is None:
        # Cassandra timestamps come back as naive UTC
        return value.replace(tzinfo=UTC)
    if column.is_list:
        return list(value)
    return value


def from_storage_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a fetched row back to an external document. Null columns are omitted."""
    document: dict[str, Any] = {}
    for name, value in row.items():
        column = COLUMNS_BY_NAME.get(name)
        if column is None or value is None:
            continue
        document[column.field] = _decode_value(column, value)
    return document
