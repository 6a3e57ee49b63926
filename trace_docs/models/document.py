"""Documents table: column definitions and asset enums.

``DOCUMENT_COLUMNS`` is the only place external (camelCase) field names are
paired with their Cassandra columns. Insert, update, row decoding and the
CREATE TABLE statement are all derived from it.
"""

from dataclasses import dataclass
from enum import Enum

TABLE_NAME = "documents"
PRIMARY_KEY = "id_document"


class AssetOperation(str, Enum):
    """Kind of asset operation a document records."""

    CREATE_ASSET = "CREATE_ASSET"
    UPDATE_ASSET = "UPDATE_ASSET"
    TRANSFER_ASSET = "TRANSFER_ASSET"
    TRANSFORM_ASSET = "TRANSFORM_ASSET"
    SPLIT_ASSET = "SPLIT_ASSET"
    GROUP_ASSET = "GROUP_ASSET"
    UNGROUP_ASSET = "UNGROUP_ASSET"
    INACTIVATE_ASSET = "INACTIVATE_ASSET"


class AssetStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class TransactionStatus(str, Enum):
    """Blockchain confirmation state of the transaction behind a document."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class LookupField(str, Enum):
    """Non-unique indexed columns usable for secondary searches."""

    ASSET_ID = "asset_id_blockchain"
    TX_HASH = "tx_hash"


@dataclass(frozen=True)
class DocumentColumn:
    field: str
    column: str
    cql_type: str = "text"

    @property
    def is_list(self) -> bool:
        return self.cql_type.startswith("list<")

    @property
    def is_decimal(self) -> bool:
        return self.cql_type == "decimal"

    @property
    def is_timestamp(self) -> bool:
        return self.cql_type == "timestamp"


DOCUMENT_COLUMNS: tuple[DocumentColumn, ...] = (
    # Identifiers
    DocumentColumn("idDocument", "id_document"),
    DocumentColumn("idAsset", "id_asset"),
    DocumentColumn("assetIdBlockchain", "asset_id_blockchain"),
    DocumentColumn("idEvaluation", "id_evaluation"),
    # Asset state
    DocumentColumn("amount", "amount", "decimal"),
    DocumentColumn("initAmount", "init_amount", "decimal"),
    DocumentColumn("owner", "owner"),
    DocumentColumn("operation", "operation"),
    DocumentColumn("status", "status"),
    DocumentColumn("txStatus", "tx_status"),
    DocumentColumn("idLocal", "id_local"),
    DocumentColumn("idExternal", "id_external", "list<text>"),
    # Ownership
    DocumentColumn("idOwner", "id_owner"),
    DocumentColumn("extIdOwner", "ext_id_owner"),
    DocumentColumn("orgOwner", "org_owner"),
    DocumentColumn("orgTarget", "org_target"),
    DocumentColumn("orgOrigin", "org_origin"),
    # Process / nature / stage
    DocumentColumn("processId", "process_id"),
    DocumentColumn("natureId", "nature_id"),
    DocumentColumn("stageId", "stage_id"),
    # Free-form payload, stored as JSON text
    DocumentColumn("data", "data"),
    DocumentColumn("dataHash", "data_hash"),
    # Relationships
    DocumentColumn("groupedBy", "grouped_by", "list<text>"),
    DocumentColumn("groupedAssets", "grouped_assets", "list<text>"),
    # Partial consumption
    DocumentColumn("targetPerson", "target_person"),
    DocumentColumn("targetLocal", "target_local"),
    DocumentColumn("quantityMoved", "quantity_moved", "decimal"),
    DocumentColumn("extTargetPerson", "ext_target_person"),
    DocumentColumn("extTargetLocal", "ext_target_local"),
    DocumentColumn("extNewAssetId", "ext_new_asset_id"),
    # Blockchain
    DocumentColumn("channelName", "channel_name"),
    DocumentColumn("txHash", "tx_hash"),
    DocumentColumn("blockNumber", "block_number"),
    # Timestamps
    DocumentColumn("timestamp", "timestamp", "timestamp"),
    DocumentColumn("createdAt", "created_at", "timestamp"),
)

COLUMNS_BY_FIELD: dict[str, DocumentColumn] = {c.field: c for c in DOCUMENT_COLUMNS}
COLUMNS_BY_NAME: dict[str, DocumentColumn] = {c.column: c for c in DOCUMENT_COLUMNS}

# Fields stored as list<text>; strings are accepted and parsed as JSON arrays
LIST_FIELDS: tuple[str, ...] = tuple(c.field for c in DOCUMENT_COLUMNS if c.is_list)

# The only fields that may change after a document is created
UPDATABLE_FIELDS: tuple[str, ...] = (
    "txHash",
    "blockNumber",
    "status",
    "txStatus",
    "amount",
    "idLocal",
    "dataHash",
)

INDEXES: dict[str, str] = {
    "idx_asset_id_blockchain": LookupField.ASSET_ID.value,
    "idx_tx_hash": LookupField.TX_HASH.value,
}


def create_table_cql(keyspace: str) -> str:
    """CREATE TABLE statement for the documents table."""
    definitions = []
    for column in DOCUMENT_COLUMNS:
        suffix = " PRIMARY KEY" if column.column == PRIMARY_KEY else ""
        definitions.append(f"{column.column} {column.cql_type}{suffix}")
    body = ",\n  ".join(definitions)
    return f"CREATE TABLE IF NOT EXISTS {keyspace}.{TABLE_NAME} (\n  {body}\n)"


def create_index_cql(keyspace: str) -> list[str]:
    return [
        f"CREATE INDEX IF NOT EXISTS {name} ON {keyspace}.{TABLE_NAME} ({column})"
        for name, column in INDEXES.items()
    ]
