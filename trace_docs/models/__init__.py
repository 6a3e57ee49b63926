"""Storage models package."""

from trace_docs.models.document import (
    COLUMNS_BY_FIELD,
    COLUMNS_BY_NAME,
    DOCUMENT_COLUMNS,
    LIST_FIELDS,
    PRIMARY_KEY,
    TABLE_NAME,
    UPDATABLE_FIELDS,
    AssetOperation,
    AssetStatus,
    DocumentColumn,
    LookupField,
    TransactionStatus,
    create_index_cql,
    create_table_cql,
)

__all__ = [
    "AssetOperation",
    "AssetStatus",
    "COLUMNS_BY_FIELD",
    "COLUMNS_BY_NAME",
    "DOCUMENT_COLUMNS",
    "DocumentColumn",
    "LIST_FIELDS",
    "LookupField",
    "PRIMARY_KEY",
    "TABLE_NAME",
    "TransactionStatus",
    "UPDATABLE_FIELDS",
    "create_index_cql",
    "create_table_cql",
]
