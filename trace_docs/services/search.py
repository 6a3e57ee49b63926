"""Document lookups by id, asset id, or transaction hash."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from trace_docs.config import Settings, settings
from trace_docs.errors import NotFoundError, ValidationError
from trace_docs.logger import get_logger
from trace_docs.models.document import LookupField
from trace_docs.services.gateway import DocumentGateway

logger = get_logger(__name__)


@dataclass
class SearchResult:
    documents: list[dict[str, Any]] = field(default_factory=list)
    page_state: str | None = None
    page_size: int | None = None

    @property
    def has_more(self) -> bool:
        return self.page_state is not None

    @property
    def is_empty(self) -> bool:
        return not self.documents


class SearchService:
    """Resolves single-value (paged) and batch (unpaged) secondary lookups."""

    def __init__(self, gateway: DocumentGateway, config: Settings = settings) -> None:
        self._gateway = gateway
        self._config = config

    async def find_by_id(self, document_id: str) -> dict[str, Any]:
        document = await self._gateway.get(document_id)
        if document is None:
            raise NotFoundError(document_id, "Document not found")
        return document

    async def search(
        self,
        lookup_field: LookupField,
        lookup: str | Sequence[str],
        *,
        page_size: int | None = None,
        page_state: str | None = None,
    ) -> SearchResult:
        """Search one indexed field by a single value or a set of values.

        Batch lookups are never paginated: ``page_size`` and ``page_state`` are
        ignored and the result has no continuation token. An empty result is
        returned as such, not raised.
        """
        if isinstance(lookup, str):
            if not lookup:
                raise ValidationError(f"{lookup_field.value} lookup value must not be empty")
            effective_size = page_size or self._config.default_page_size
            if effective_size > self._config.max_page_size:
                raise ValidationError(f"pageSize must be at most {self._config.max_page_size}")
            page = await self._gateway.search(
                lookup_field,
                lookup,
                page_size=effective_size,
                page_state=page_state,
            )
            logger.info(
                "Search page served",
                field=lookup_field.value,
                count=len(page.documents),
                has_more=page.page_state is not None,
            )
            return SearchResult(documents=page.documents, page_state=page.page_state, page_size=effective_size)

        values = list(lookup)
        if not values:
            raise ValidationError(f"{lookup_field.value} lookup set must not be empty")
        if len(values) > self._config.max_batch_lookup:
            raise ValidationError(f"At most {self._config.max_batch_lookup} lookup values are allowed")
        if page_size is not None or page_state is not None:
            logger.debug("Ignoring pagination for batch lookup", field=lookup_field.value)

        page = await self._gateway.search(lookup_field, values)
        logger.info("Batch search served", field=lookup_field.value, values=len(values), count=len(page.documents))
        return SearchResult(documents=page.documents)
