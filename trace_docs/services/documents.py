"""Batch document operations: insert with rollback, delete, update."""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from trace_docs.errors import NotFoundError, PartialFailureError, ValidationError
from trace_docs.logger import get_logger, log_exception
from trace_docs.services.gateway import DocumentGateway

logger = get_logger(__name__)


class BatchStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class BatchProgress:
    """Where a batch operation is: Pending -> Processing(i) -> Completed | Failed(i, reason)."""

    operation: str
    total: int
    status: BatchStatus = BatchStatus.PENDING
    index: int | None = None
    reason: str | None = None

    def processing(self, index: int) -> None:
        self.status = BatchStatus.PROCESSING
        self.index = index

    def completed(self) -> None:
        self.status = BatchStatus.COMPLETED
        logger.info("Batch completed", operation=self.operation, total=self.total)

    def failed(self, reason: str) -> None:
        self.status = BatchStatus.FAILED
        self.reason = reason
        logger.warning(
            "Batch failed",
            operation=self.operation,
            index=self.index,
            total=self.total,
            reason=reason,
        )


class DocumentService:
    """Orchestrates multi-document writes on top of the gateway."""

    def __init__(self, gateway: DocumentGateway) -> None:
        self._gateway = gateway

    async def add_documents(self, documents: Sequence[Mapping[str, Any]]) -> list[str]:
        """Insert documents in order and return their ids.

        Inserts are sequential. When one fails, every document inserted earlier in
        the call is deleted again (best effort) and ``PartialFailureError`` is
        raised with the insert error as its cause; later documents are never
        attempted. Rollback is not transactional: a crash mid-rollback leaves the
        remaining documents in place.
        """
        if not documents:
            raise ValidationError("Documents array is required and must not be empty")

        logger.info("Adding documents", count=len(documents))
        progress = BatchProgress("add_documents", len(documents))
        created_ids: list[str] = []

        for index, document in enumerate(documents):
            progress.processing(index)
            try:
                created_ids.append(await self._gateway.insert(document))
            except Exception as exc:
                progress.failed(str(exc))
                rolled_back, failed = await self._rollback(created_ids)
                raise PartialFailureError(
                    index,
                    exc,
                    created_ids=created_ids,
                    rolled_back_ids=rolled_back,
                    failed_rollback_ids=failed,
                ) from exc

        progress.completed()
        return created_ids

    async def _rollback(self, document_ids: Sequence[str]) -> tuple[list[str], list[str]]:
        if not document_ids:
            return [], []

        logger.warning("Rolling back inserted documents", count=len(document_ids))
        rolled_back: list[str] = []
        failed: list[str] = []
        for document_id in document_ids:
            try:
                await self._gateway.delete(document_id)
            except Exception as exc:
                log_exception(logger, exc, "Rollback delete failed", id_document=document_id)
                failed.append(document_id)
            else:
                rolled_back.append(document_id)
        return rolled_back, failed

    async def _for_each_existing(
        self,
        operation: str,
        document_ids: Sequence[str],
        action: Callable[[str], Awaitable[None]],
    ) -> int:
        # Stops at the first missing id; work already done for earlier ids stays done.
        if not document_ids:
            raise ValidationError("docsId array is required and must not be empty")

        progress = BatchProgress(operation, len(document_ids))
        for index, document_id in enumerate(document_ids):
            progress.processing(index)
            if await self._gateway.get(document_id) is None:
                progress.failed(f"Document {document_id} not found")
                raise NotFoundError(document_id)
            await action(document_id)

        progress.completed()
        return len(document_ids)

    async def remove_documents(self, document_ids: Sequence[str]) -> int:
        """Delete documents after checking each one exists. Returns the count removed."""
        logger.info("Removing documents", count=len(document_ids))
        return await self._for_each_existing("remove_documents", document_ids, self._gateway.delete)

    async def update_documents(self, document_ids: Sequence[str], updates: Mapping[str, Any]) -> int:
        """Apply the same field updates to each existing document. Returns the count updated."""
        logger.info("Updating documents", count=len(document_ids), fields=sorted(updates))

        async def apply(document_id: str) -> None:
            await self._gateway.update(document_id, updates)

        return await self._for_each_existing("update_documents", document_ids, apply)
