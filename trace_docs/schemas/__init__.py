from trace_docs.schemas.base import BaseResponse, CamelModel, ErrorResponse
from trace_docs.schemas.document import (
    AddDocumentsRequest,
    AddDocumentsResponse,
    DeleteDocumentsRequest,
    DeleteDocumentsResponse,
    DocumentCreate,
    DocumentResponse,
    DocumentUpdates,
    Pagination,
    SearchByAssetIdRequest,
    SearchByIdRequest,
    SearchByTxHashRequest,
    SearchResponse,
    UpdateDocumentsRequest,
    UpdateDocumentsResponse,
)

__all__ = [
    "AddDocumentsRequest",
    "AddDocumentsResponse",
    "BaseResponse",
    "CamelModel",
    "DeleteDocumentsRequest",
    "DeleteDocumentsResponse",
    "DocumentCreate",
    "DocumentResponse",
    "DocumentUpdates",
    "ErrorResponse",
    "Pagination",
    "SearchByAssetIdRequest",
    "SearchByIdRequest",
    "SearchByTxHashRequest",
    "SearchResponse",
    "UpdateDocumentsRequest",
    "UpdateDocumentsResponse",
]
