"""Persistence gateway for the documents table.

Every method is a thin CQL statement over the shared ``StoreClient``; field
translation goes through ``field_mapper`` so the storage representation never
leaves this module.
"""

import asyncio
import base64
import binascii
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from cassandra.query import UNSET_VALUE

from trace_docs.config import Settings, settings
from trace_docs.database import StoreClient
from trace_docs.errors import ValidationError
from trace_docs.logger import async_log_timing, get_logger
from trace_docs.models.document import DOCUMENT_COLUMNS, PRIMARY_KEY, LookupField
from trace_docs.services.field_mapper import (
    from_storage_row,
    to_column_values,
    to_storage_form,
    to_update_values,
)

logger = get_logger(__name__)

_INSERT_COLUMNS: tuple[str, ...] = tuple(c.column for c in DOCUMENT_COLUMNS)


@dataclass
class DocumentPage:
    """Documents returned by a secondary lookup.

    ``page_state`` is the opaque continuation token for the next page; it is
    ``None`` on the last page and always ``None`` for batch lookups.
    """

    documents: list[dict[str, Any]] = field(default_factory=list)
    page_state: str | None = None


def encode_page_state(raw: bytes | None) -> str | None:
    if not raw:
        return None
    return base64.b64encode(raw).decode("ascii")


def decode_page_state(token: str | None) -> bytes | None:
    if not token:
        return None
    try:
        return base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("pageState is not a valid continuation token") from exc


class DocumentGateway:
    """CRUD and lookup primitives against the documents table."""

    def __init__(self, store: StoreClient, config: Settings = settings) -> None:
        self._store = store
        self._config = config

    @property
    def _table(self) -> str:
        return self._store.table

    async def insert(self, document: Mapping[str, Any]) -> str:
        """Write a new document and return its generated id.

        The id and ``createdAt`` are always assigned here, overriding anything
        the caller put in the draft. The statement always lists every column;
        absent fields are bound as unset so one prepared INSERT serves all drafts.
        """
        record = dict(document)
        record["idDocument"] = str(uuid4())
        record["createdAt"] = datetime.now(UTC)

        values = to_column_values(to_storage_form(record))
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        query = f"INSERT INTO {self._table} ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders})"

        logger.debug("Inserting document", id_document=record["idDocument"], columns=len(values))
        await self._store.execute(query, [values.get(c, UNSET_VALUE) for c in _INSERT_COLUMNS])
        logger.info("Document inserted", id_document=record["idDocument"])
        return record["idDocument"]

    async def delete(self, document_id: str) -> None:
        """Delete by primary key. Deleting a missing id is not an error."""
        await self._store.execute(f"DELETE FROM {self._table} WHERE {PRIMARY_KEY} = ?", [document_id])
        logger.info("Document deleted", id_document=document_id)

    async def get(self, document_id: str) -> dict[str, Any] | None:
        page = await self._store.execute(f"SELECT * FROM {self._table} WHERE {PRIMARY_KEY} = ?", [document_id])
        logger.debug("Point lookup", id_document=document_id, found=bool(page.rows))
        if not page.rows:
            return None
        return from_storage_row(page.rows[0])

    async def search(
        self,
        lookup_field: LookupField,
        lookup: str | Sequence[str],
        *,
        page_size: int | None = None,
        page_state: str | None = None,
    ) -> DocumentPage:
        """Find documents whose indexed column equals the lookup value(s).

        A single value is paged: ``page_size`` rows (default 100) starting at
        ``page_state``. A sequence of values runs one query per value
        concurrently, ignores the paging arguments, and concatenates the rows in
        the order the values were given.
        """
        column = LookupField(lookup_field).value
        query = f"SELECT * FROM {self._table} WHERE {column} = ?"

        if isinstance(lookup, str):
            fetch_size = page_size or self._config.default_page_size
            async with async_log_timing("search_page", logger=logger, column=column, page_size=fetch_size) as timing:
                page = await self._store.execute(
                    query,
                    [lookup],
                    fetch_size=fetch_size,
                    paging_state=decode_page_state(page_state),
                )
                timing["rows"] = len(page.rows)
            return DocumentPage(
                documents=[from_storage_row(row) for row in page.rows],
                page_state=encode_page_state(page.paging_state),
            )

        values = list(lookup)
        async with async_log_timing("search_batch", logger=logger, column=column, queries=len(values)) as timing:
            pages = await asyncio.gather(
                *(self._store.execute(query, [value], fetch_size=self._config.batch_fetch_size) for value in values)
            )
            timing["rows"] = sum(len(page.rows) for page in pages)

        documents = [from_storage_row(row) for page in pages for row in page.rows]
        return DocumentPage(documents=documents, page_state=None)

    async def update(self, document_id: str, field_updates: Mapping[str, Any]) -> None:
        """Apply ``field_updates`` to one document in a single UPDATE.

        Nothing is sent to the store when there is nothing to set.
        """
        values = to_update_values(field_updates)
        if not values:
            logger.warning("No fields to update", id_document=document_id)
            return

        columns = list(values)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        query = f"UPDATE {self._table} SET {assignments} WHERE {PRIMARY_KEY} = ?"

        logger.debug("Updating document", id_document=document_id, columns=columns)
        await self._store.execute(query, [*(values[c] for c in columns), document_id])
        logger.info("Document updated", id_document=document_id)
