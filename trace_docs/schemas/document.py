"""Pydantic schemas for documents and the document endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import ConfigDict, Field, create_model, model_validator
from pydantic.alias_generators import to_camel

from trace_docs.models.document import (
    COLUMNS_BY_FIELD,
    UPDATABLE_FIELDS,
    AssetOperation,
    AssetStatus,
    TransactionStatus,
)
from trace_docs.schemas.base import BaseResponse, CamelModel

NonEmptyStr = Annotated[str, Field(min_length=1)]
# Relationship arrays also accept a JSON-encoded array string
RelationList = list[str] | str

# Status columns are free text; the enum values are the documented vocabulary
STATUS_EXAMPLES: dict[str, list[str]] = {
    "status": [s.value for s in AssetStatus],
    "txStatus": [s.value for s in TransactionStatus],
}


class DocumentCreate(CamelModel):
    """Draft of a document as sent by clients.

    ``idDocument`` and ``createdAt`` are accepted for compatibility but always
    replaced by server-generated values.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id_document: str | None = None
    created_at: datetime | None = None

    id_asset: NonEmptyStr
    asset_id_blockchain: str | None = None
    id_evaluation: str | None = None
    amount: Decimal | None = None
    init_amount: Decimal | None = None
    owner: NonEmptyStr
    operation: AssetOperation
    status: str | None = Field(None, examples=STATUS_EXAMPLES["status"])
    tx_status: str | None = Field(None, examples=STATUS_EXAMPLES["txStatus"])
    id_local: str | None = None
    id_external: RelationList | None = None

    id_owner: str | None = None
    ext_id_owner: str | None = None
    org_owner: str | None = None
    org_target: str | None = None
    org_origin: str | None = None

    process_id: NonEmptyStr
    nature_id: NonEmptyStr
    stage_id: NonEmptyStr

    data: list[dict[str, Any]]
    data_hash: NonEmptyStr

    grouped_by: RelationList | None = None
    grouped_assets: RelationList | None = None

    target_person: str | None = None
    target_local: str | None = None
    quantity_moved: Decimal | None = None
    ext_target_person: str | None = None
    ext_target_local: str | None = None
    ext_new_asset_id: str | None = None

    channel_name: NonEmptyStr
    tx_hash: str | None = None
    block_number: str | None = None
    timestamp: datetime

    def to_draft(self) -> dict[str, Any]:
        """External-name mapping handed to the document service."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id_document", "created_at"})


class DocumentResponse(BaseResponse):
    """Stored document as returned by the search endpoints. Null fields are omitted."""

    id_document: str
    id_asset: str | None = None
    asset_id_blockchain: str | None = None
    id_evaluation: str | None = None
    amount: float | None = None
    init_amount: float | None = None
    owner: str | None = None
    operation: str | None = None
    status: str | None = None
    tx_status: str | None = None
    id_local: str | None = None
    id_external: list[str] | None = None
    id_owner: str | None = None
    ext_id_owner: str | None = None
    org_owner: str | None = None
    org_target: str | None = None
    org_origin: str | None = None
    process_id: str | None = None
    nature_id: str | None = None
    stage_id: str | None = None
    # Raw text when the stored payload is not valid JSON
    data: list[Any] | str | None = None
    data_hash: str | None = None
    grouped_by: list[str] | None = None
    grouped_assets: list[str] | None = None
    target_person: str | None = None
    target_local: str | None = None
    quantity_moved: float | None = None
    ext_target_person: str | None = None
    ext_target_local: str | None = None
    ext_new_asset_id: str | None = None
    channel_name: str | None = None
    tx_hash: str | None = None
    block_number: str | None = None
    timestamp: datetime | None = None
    created_at: datetime | None = None


# --- Add / Delete / Update ---


class AddDocumentsRequest(CamelModel):
    documents: Annotated[list[DocumentCreate], Field(min_length=1)]


class AddDocumentsResponse(BaseResponse):
    docs_created_ids: list[str]
    message: str


class DeleteDocumentsRequest(CamelModel):
    docs_id: Annotated[list[NonEmptyStr], Field(min_length=1)]


class DeleteDocumentsResponse(BaseResponse):
    removed_documents: int
    message: str


class _DocumentUpdatesBase(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    @model_validator(mode="after")
    def require_one_field(self) -> "_DocumentUpdatesBase":
        if not self.model_fields_set:
            raise ValueError("updates object is required and must not be empty")
        return self

    def to_field_updates(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


def _update_field(field: str) -> tuple[Any, Any]:
    column = COLUMNS_BY_FIELD[field]
    annotation = Decimal | None if column.is_decimal else str | None
    return annotation, Field(None, examples=STATUS_EXAMPLES.get(field))


DocumentUpdates = create_model(
    "DocumentUpdates",
    __base__=_DocumentUpdatesBase,
    __doc__="Fields that may change after creation. At least one must be given.",
    **{COLUMNS_BY_FIELD[field].column: _update_field(field) for field in UPDATABLE_FIELDS},
)


class UpdateDocumentsRequest(CamelModel):
    docs_id: Annotated[list[NonEmptyStr], Field(min_length=1)]
    updates: DocumentUpdates


class UpdateDocumentsResponse(BaseResponse):
    updated_documents: int
    message: str


# --- Search ---


class SearchByIdRequest(CamelModel):
    id_document: NonEmptyStr


BatchLookup = Annotated[list[NonEmptyStr], Field(min_length=1, max_length=50)]
PageSize = Annotated[int, Field(ge=1, le=1000)]


class SearchByAssetIdRequest(CamelModel):
    """Single ``idAsset`` (paged) or batch ``idAssets`` (unpaged). The batch wins when both are set."""

    id_asset: NonEmptyStr | None = None
    id_assets: BatchLookup | None = None
    page_size: PageSize | None = None
    page_state: str | None = None

    @model_validator(mode="after")
    def require_lookup(self) -> "SearchByAssetIdRequest":
        if self.id_asset is None and self.id_assets is None:
            raise ValueError("idAsset or idAssets is required")
        return self

    @property
    def lookup(self) -> str | list[str]:
        return self.id_assets if self.id_assets is not None else self.id_asset


class SearchByTxHashRequest(CamelModel):
    """Single ``txHash`` (paged) or batch ``txHashes`` (unpaged). The batch wins when both are set."""

    tx_hash: NonEmptyStr | None = None
    tx_hashes: BatchLookup | None = None
    page_size: PageSize | None = None
    page_state: str | None = None

    @model_validator(mode="after")
    def require_lookup(self) -> "SearchByTxHashRequest":
        if self.tx_hash is None and self.tx_hashes is None:
            raise ValueError("txHash or txHashes is required")
        return self

    @property
    def lookup(self) -> str | list[str]:
        return self.tx_hashes if self.tx_hashes is not None else self.tx_hash


class Pagination(BaseResponse):
    page_state: str
    has_more: bool = True
    page_size: int


class SearchResponse(BaseResponse):
    """Search result. ``pagination`` is present only when another page exists."""

    count: int
    documents: list[DocumentResponse]
    pagination: Pagination | None = None
