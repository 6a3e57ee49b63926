"""Document API router."""

from datetime import UTC, datetime
from typing import NoReturn

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from trace_docs.config import settings
from trace_docs.deps import DocumentServiceDep, SearchServiceDep, Store
from trace_docs.errors import NotFoundError, PartialFailureError, StoreConnectionError, ValidationError
from trace_docs.logger import get_logger
from trace_docs.models.document import LookupField
from trace_docs.schemas import (
    AddDocumentsRequest,
    AddDocumentsResponse,
    DeleteDocumentsRequest,
    DeleteDocumentsResponse,
    DocumentResponse,
    ErrorResponse,
    Pagination,
    SearchByAssetIdRequest,
    SearchByIdRequest,
    SearchByTxHashRequest,
    SearchResponse,
    UpdateDocumentsRequest,
    UpdateDocumentsResponse,
)
from trace_docs.services import SearchResult, SearchService
from trace_docs.utils import (
    raise_bad_request,
    raise_internal_error,
    raise_not_found,
    raise_service_unavailable,
)

router = APIRouter(prefix=settings.api_prefix, tags=["documents"])
logger = get_logger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _raise_for(exc: Exception, operation: str, fallback_message: str) -> NoReturn:
    """Translate a service error into the matching HTTP error."""
    if isinstance(exc, ValidationError):
        logger.warning("Rejected request", operation=operation, error=str(exc))
        raise_bad_request(str(exc), cause=exc)
    if isinstance(exc, NotFoundError):
        logger.debug("Document not found", operation=operation, id_document=exc.document_id)
        raise_not_found(str(exc), cause=exc)
    if isinstance(exc, StoreConnectionError):
        logger.error("Store unavailable", operation=operation, error=str(exc))
        raise_service_unavailable(str(exc), cause=exc)
    logger.error(
        f"Error in {operation}",
        error=str(exc),
        error_type=type(exc).__name__,
        error_module=type(exc).__module__,
    )
    raise_internal_error(str(exc) or fallback_message, cause=exc)


@router.post("/addDocument", response_model=AddDocumentsResponse, responses=ERROR_RESPONSES)
async def add_document(body: AddDocumentsRequest, service: DocumentServiceDep) -> AddDocumentsResponse:
    """Insert documents in order; on failure, already-inserted ones are rolled back."""
    try:
        created_ids = await service.add_documents([document.to_draft() for document in body.documents])
    except PartialFailureError as e:
        logger.error(
            "Error in addDocument",
            failed_index=e.failed_index,
            created=len(e.created_ids),
            rolled_back=len(e.rolled_back_ids),
            rollback_failed=len(e.failed_rollback_ids),
            error=str(e),
        )
        raise_internal_error(
            {
                "message": str(e),
                "rollback": {
                    "attempted": e.rollback_attempted,
                    "createdIds": e.created_ids,
                    "rolledBackIds": e.rolled_back_ids,
                    "failedIds": e.failed_rollback_ids,
                },
                "failedIndex": e.failed_index,
            },
            cause=e,
        )
    except Exception as e:
        _raise_for(e, "addDocument", "Error creating documents")

    return AddDocumentsResponse(
        docs_created_ids=created_ids,
        message=f"{len(created_ids)} document(s) created successfully",
    )


@router.post("/deleteDocuments", response_model=DeleteDocumentsResponse, responses=ERROR_RESPONSES)
async def delete_documents(body: DeleteDocumentsRequest, service: DocumentServiceDep) -> DeleteDocumentsResponse:
    """Delete documents by id, stopping at the first id that does not exist."""
    try:
        removed = await service.remove_documents(body.docs_id)
    except Exception as e:
        _raise_for(e, "deleteDocuments", "Error deleting documents")

    return DeleteDocumentsResponse(
        removed_documents=removed,
        message=f"{removed} document(s) deleted successfully",
    )


@router.post(
    "/searchByIdDocument",
    response_model=list[DocumentResponse],
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def search_by_id_document(body: SearchByIdRequest, service: SearchServiceDep) -> list[DocumentResponse]:
    """Point lookup. The single match is returned as a one-element list."""
    try:
        document = await service.find_by_id(body.id_document)
    except Exception as e:
        _raise_for(e, "searchByIdDocument", "Error searching document")

    return [DocumentResponse.model_validate(document)]


@router.patch("/updateDocuments", response_model=UpdateDocumentsResponse, responses=ERROR_RESPONSES)
async def update_documents(body: UpdateDocumentsRequest, service: DocumentServiceDep) -> UpdateDocumentsResponse:
    """Apply the same allow-listed field updates to every listed document."""
    try:
        updated = await service.update_documents(body.docs_id, body.updates.to_field_updates())
    except Exception as e:
        _raise_for(e, "updateDocuments", "Error updating documents")

    return UpdateDocumentsResponse(
        updated_documents=updated,
        message=f"{updated} document(s) updated successfully",
    )


async def _search(
    service: SearchService,
    operation: str,
    lookup_field: LookupField,
    body: SearchByAssetIdRequest | SearchByTxHashRequest,
) -> SearchResponse:
    try:
        result: SearchResult = await service.search(
            lookup_field,
            body.lookup,
            page_size=body.page_size,
            page_state=body.page_state,
        )
    except Exception as e:
        _raise_for(e, operation, "Error searching documents")

    if result.is_empty:
        raise_not_found("No documents found")

    pagination = None
    if result.has_more:
        pagination = Pagination(page_state=result.page_state, page_size=result.page_size)

    return SearchResponse(
        count=len(result.documents),
        documents=[DocumentResponse.model_validate(document) for document in result.documents],
        pagination=pagination,
    )


@router.post(
    "/searchByAssetId",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def search_by_asset_id(body: SearchByAssetIdRequest, service: SearchServiceDep) -> SearchResponse:
    """Search by blockchain asset id: ``idAsset`` is paged, ``idAssets`` (up to 50) is not."""
    return await _search(service, "searchByAssetId", LookupField.ASSET_ID, body)


@router.post(
    "/searchByTxHash",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def search_by_tx_hash(body: SearchByTxHashRequest, service: SearchServiceDep) -> SearchResponse:
    """Search by transaction hash: ``txHash`` is paged, ``txHashes`` (up to 50) is not."""
    return await _search(service, "searchByTxHash", LookupField.TX_HASH, body)


@router.get("/health")
async def health_check(store: Store) -> JSONResponse:
    """Report service health. Returns 503 when Cassandra does not answer."""
    checks = {"cassandra": store.is_connected and await store.ping()}
    healthy = all(checks.values())
    if not healthy:
        logger.warning("Health check failed", checks=checks)

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if healthy else "unhealthy",
            "service": settings.otel_service_name,
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        },
    )
