"""Common FastAPI dependencies for consistent type annotations.

Usage:
    from trace_docs.deps import DocumentServiceDep

    async def my_endpoint(service: DocumentServiceDep):
        ...

Tests swap the store for an in-memory one through
``app.dependency_overrides[get_store]``.
"""

from typing import Annotated

from fastapi import Depends

from trace_docs.config import settings
from trace_docs.database import StoreClient, get_store
from trace_docs.services import DocumentGateway, DocumentService, SearchService

Store = Annotated[StoreClient, Depends(get_store)]


def get_gateway(store: Store) -> DocumentGateway:
    return DocumentGateway(store, settings)


Gateway = Annotated[DocumentGateway, Depends(get_gateway)]


def get_document_service(gateway: Gateway) -> DocumentService:
    return DocumentService(gateway)


def get_search_service(gateway: Gateway) -> SearchService:
    return SearchService(gateway, settings)


DocumentServiceDep = Annotated[DocumentService, Depends(get_document_service)]
SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]

__all__ = ["DocumentServiceDep", "Gateway", "SearchServiceDep", "Store"]
