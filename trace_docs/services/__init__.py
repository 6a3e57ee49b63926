"""Document services: field mapping, persistence gateway, batch writes and search."""

from trace_docs.services.documents import BatchProgress, BatchStatus, DocumentService
from trace_docs.services.gateway import DocumentGateway, DocumentPage, decode_page_state, encode_page_state
from trace_docs.services.search import SearchResult, SearchService

__all__ = [
    "BatchProgress",
    "BatchStatus",
    "DocumentGateway",
    "DocumentPage",
    "DocumentService",
    "SearchResult",
    "SearchService",
    "decode_page_state",
    "encode_page_state",
]
