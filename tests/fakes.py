"""In-memory stand-in for ``StoreClient``.

Understands exactly the CQL shapes the gateway emits (INSERT, point and
indexed SELECT, DELETE, UPDATE by primary key) plus the handful of
maintenance statements, so tests exercise the real gateway, field mapper
and services without a Cassandra node.
"""

import re
from collections.abc import Callable, Sequence
from typing import Any

from cassandra.cqltypes import DateType, DecimalType, ListType, UTF8Type
from cassandra.query import UNSET_VALUE

from trace_docs.database import StorePage
from trace_docs.models.document import COLUMNS_BY_NAME, PRIMARY_KEY, TABLE_NAME

_INSERT = re.compile(r"^INSERT INTO (\S+) \(([^)]*)\) VALUES \(([?, ]*)\)$")
_SELECT = re.compile(r"^SELECT \* FROM (\S+) WHERE (\w+) = \?$")
_DELETE = re.compile(r"^DELETE FROM (\S+) WHERE (\w+) = \?$")
_UPDATE = re.compile(r"^UPDATE (\S+) SET (.+) WHERE (\w+) = \?$")
_COUNT = re.compile(r"^SELECT COUNT\(\*\) AS total FROM (\S+)$")

# Driver serializers per CQL type; binds go through them as they would on the wire
_CQL_TYPES = {
    "text": UTF8Type,
    "decimal": DecimalType,
    "timestamp": DateType,
    "list<text>": ListType.apply_parameters([UTF8Type]),
}
_PROTOCOL_VERSION = 4


class StoreFailure(Exception):
    """Injected store error."""


class InMemoryStore:
    def __init__(self, keyspace: str = "trace_tracker") -> None:
        self._keyspace = keyspace
        self.rows: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, list[Any]]] = []
        self.connected = True
        self.reachable = True
        self._failures: list[tuple[Callable[[str, list[Any]], bool], Exception]] = []

    # --- StoreClient surface ---

    @property
    def keyspace(self) -> str:
        return self._keyspace

    @property
    def table(self) -> str:
        return f"{self._keyspace}.{TABLE_NAME}"

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def connect(self) -> None:
        self.connected = True

    async def shutdown(self) -> None:
        self.connected = False

    async def ensure_schema(self) -> None:
        return None

    async def ping(self) -> bool:
        return self.reachable

    async def truncate(self) -> None:
        self.rows.clear()

    async def count(self) -> int:
        return len(self.rows)

    async def execute(
        self,
        query: str,
        parameters: Sequence[Any] = (),
        *,
        fetch_size: int | None = None,
        paging_state: bytes | None = None,
    ) -> StorePage:
        params = list(parameters)
        self.calls.append((query, params))

        for index, (matches, error) in enumerate(self._failures):
            if matches(query, params):
                del self._failures[index]
                raise error

        if m := _INSERT.match(query):
            self._check_table(m.group(1))
            columns = [c.strip() for c in m.group(2).split(",")]
            row = self._bind(columns, params)
            self.rows[row[PRIMARY_KEY]] = row
            return StorePage()

        if m := _COUNT.match(query):
            self._check_table(m.group(1))
            return StorePage(rows=[{"total": len(self.rows)}])

        if m := _SELECT.match(query):
            self._check_table(m.group(1))
            return self._select(m.group(2), params[0], fetch_size, paging_state)

        if m := _DELETE.match(query):
            self._check_table(m.group(1))
            self.rows.pop(params[0], None)
            return StorePage()

        if m := _UPDATE.match(query):
            self._check_table(m.group(1))
            columns = [part.split("=")[0].strip() for part in m.group(2).split(",")]
            values = self._bind(columns, params[:-1])
            document_id = params[-1]
            # Cassandra UPDATE is an upsert
            self.rows.setdefault(document_id, {PRIMARY_KEY: document_id}).update(values)
            return StorePage()

        if query.startswith("SELECT release_version FROM system.local"):
            if not self.reachable:
                raise StoreFailure("no host available")
            return StorePage(rows=[{"release_version": "4.1.0"}])

        raise AssertionError(f"Unexpected query: {query}")

    # --- Test helpers ---

    def fail_when(self, matches: Callable[[str, list[Any]], bool], error: Exception | None = None) -> None:
        """Make the next statement that ``matches`` raise ``error`` (once)."""
        self._failures.append((matches, error or StoreFailure("injected failure")))

    def fail_nth_insert(self, n: int, error: Exception | None = None) -> None:
        """Fail the ``n``-th INSERT from now (1-based)."""
        seen = 0

        def matches(query: str, _params: list[Any]) -> bool:
            nonlocal seen
            if not query.startswith("INSERT"):
                return False
            seen += 1
            return seen == n

        self.fail_when(matches, error)

    def fail_delete_of(self, document_id: str, error: Exception | None = None) -> None:
        self.fail_when(lambda q, p: q.startswith("DELETE") and p == [document_id], error)

    def queries(self, prefix: str) -> list[tuple[str, list[Any]]]:
        return [call for call in self.calls if call[0].startswith(prefix)]

    @staticmethod
    def _bind(columns: list[str], params: list[Any]) -> dict[str, Any]:
        """Check binds the way a prepared statement would and return the stored values.

        Unset values leave the column untouched and an empty collection is
        stored as null, as Cassandra does.
        """
        values: dict[str, Any] = {}
        for name, value in zip(columns, params, strict=True):
            column = COLUMNS_BY_NAME.get(name)
            if column is None:
                raise StoreFailure(f"Undefined column name {name}")
            if value is UNSET_VALUE:
                continue
            if value is not None:
                try:
                    _CQL_TYPES[column.cql_type].serialize(value, _PROTOCOL_VERSION)
                except Exception as exc:
                    raise TypeError(f"Received an argument of invalid type for column '{name}': {value!r}") from exc
            if column.is_list and not value:
                value = None
            values[name] = value
        return values

    def _check_table(self, table: str) -> None:
        assert table == self.table, f"query against {table}, expected {self.table}"

    def _select(
        self,
        column: str,
        value: Any,
        fetch_size: int | None,
        paging_state: bytes | None,
    ) -> StorePage:
        matching = [dict(row) for row in self.rows.values() if row.get(column) == value]
        if column == PRIMARY_KEY or fetch_size is None:
            return StorePage(rows=matching)

        offset = int(paging_state.decode()) if paging_state else 0
        page = matching[offset : offset + fetch_size]
        next_offset = offset + fetch_size
        next_state = str(next_offset).encode() if next_offset < len(matching) else None
        return StorePage(rows=page, paging_state=next_state)
