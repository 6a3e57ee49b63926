"""Domain errors raised by the store client and document services."""

from collections.abc import Sequence


class DocumentError(Exception):
    """Base exception for document service errors."""


class ValidationError(DocumentError):
    """Input rejected before (or instead of) touching the store."""


class NotFoundError(DocumentError):
    """Referenced document does not exist."""

    def __init__(self, document_id: str, message: str | None = None) -> None:
        self.document_id = document_id
        super().__init__(message or f"Document {document_id} not found")


class StoreConnectionError(DocumentError):
    """Store unreachable after the connection retry budget was spent."""

    def __init__(self, attempts: int, message: str | None = None) -> None:
        self.attempts = attempts
        super().__init__(message or f"Could not connect to Cassandra after {attempts} attempt(s)")


class PartialFailureError(DocumentError):
    """A multi-document insert failed partway.

    The original store error is chained as ``__cause__`` and its message is the
    one reported; the rollback outcome is informational only.
    """

    def __init__(
        self,
        failed_index: int,
        cause: BaseException,
        *,
        created_ids: Sequence[str] = (),
        rolled_back_ids: Sequence[str] = (),
        failed_rollback_ids: Sequence[str] = (),
    ) -> None:
        self.failed_index = failed_index
        self.created_ids = list(created_ids)
        self.rolled_back_ids = list(rolled_back_ids)
        self.failed_rollback_ids = list(failed_rollback_ids)
        super().__init__(str(cause) or "Error creating documents")

    @property
    def rollback_attempted(self) -> bool:
        return bool(self.created_ids)

    @property
    def rollback_succeeded(self) -> bool:
        return not self.failed_rollback_ids
