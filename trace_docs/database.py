"""Cassandra cluster and session management.

The driver is thread-based: statements complete on its I/O threads through
``ResponseFuture`` callbacks. ``StoreClient`` hands those results back to the
running event loop so the rest of the application only ever awaits.

The driver modules that pick an I/O reactor (``cassandra.cluster``) are imported
when a cluster is actually built, so importing this module never opens sockets
or looks for libev.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from trace_docs.config import Settings, settings
from trace_docs.errors import StoreConnectionError
from trace_docs.logger import async_log_timing, get_logger
from trace_docs.models.document import TABLE_NAME, create_index_cql, create_table_cql

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class StorePage:
    """One page of rows plus the driver's paging state (``None`` on the last page)."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    paging_state: bytes | None = None


async def connect_with_retry(
    connect: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    delay_seconds: float,
    retry_on: tuple[type[BaseException], ...],
) -> T:
    """Call ``connect`` until it succeeds or the attempt budget is spent.

    Only exceptions in ``retry_on`` are retried, with a fixed delay between
    attempts. Anything else propagates from the attempt that raised it.

    Raises:
        StoreConnectionError: The last of ``max_attempts`` attempts failed with a
            retryable error. The error is chained as ``__cause__``.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return await connect()
        except retry_on as exc:
            if attempt >= max_attempts:
                logger.error(
                    "Cassandra connection failed, retry budget exhausted",
                    attempts=attempt,
                    error=str(exc),
                )
                raise StoreConnectionError(attempt) from exc
            logger.warning(
                "Cassandra connection failed, retrying",
                attempt=attempt,
                max_attempts=max_attempts,
                delay_seconds=delay_seconds,
                error=str(exc),
            )
            await asyncio.sleep(delay_seconds)
    raise StoreConnectionError(max_attempts)


def _set_result(future: asyncio.Future, value: Any) -> None:
    if not future.done():
        future.set_result(value)


def _set_exception(future: asyncio.Future, exc: BaseException) -> None:
    if not future.done():
        future.set_exception(exc)


def _as_asyncio(response_future: Any) -> asyncio.Future:
    """Bridge a driver ``ResponseFuture`` to an asyncio future resolving to its ``ResultSet``."""
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def on_success(_rows: Any) -> None:
        # The final result is set before callbacks run, so this does not block.
        loop.call_soon_threadsafe(_set_result, future, response_future.result())

    def on_error(exc: BaseException) -> None:
        loop.call_soon_threadsafe(_set_exception, future, exc)

    response_future.add_callbacks(on_success, on_error)
    return future


class StoreClient:
    """Owns the Cassandra cluster/session used by every request.

    A single session is shared across concurrent requests; the driver
    multiplexes it, so no locking happens here.
    """

    def __init__(self, config: Settings = settings) -> None:
        self._config = config
        self._cluster: Any = None
        self._session: Any = None
        self._prepared: dict[str, Any] = {}

    @property
    def keyspace(self) -> str:
        return self._config.keyspace

    @property
    def table(self) -> str:
        """Fully qualified documents table."""
        return f"{self.keyspace}.{TABLE_NAME}"

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    def _build_cluster(self) -> Any:
        from cassandra import ConsistencyLevel
        from cassandra.cluster import EXEC_PROFILE_DEFAULT, Cluster, ExecutionProfile
        from cassandra.policies import DCAwareRoundRobinPolicy
        from cassandra.query import dict_factory

        consistency_name = self._config.cassandra_consistency.upper()
        if consistency_name not in ConsistencyLevel.name_to_value:
            raise ValueError(f"Unknown Cassandra consistency level: {self._config.cassandra_consistency}")

        profile_options: dict[str, Any] = {
            "consistency_level": ConsistencyLevel.name_to_value[consistency_name],
            "request_timeout": self._config.cassandra_request_timeout,
            "row_factory": dict_factory,
        }

        if self._config.cassandra_mode == "astra":
            from cassandra.auth import PlainTextAuthProvider

            bundle_path = Path(self._config.astra_secure_bundle_path).resolve()
            logger.info(
                "Configuring Cassandra client for Astra",
                bundle=str(bundle_path),
                keyspace=self._config.astra_keyspace,
            )
            return Cluster(
                cloud={"secure_connect_bundle": str(bundle_path)},
                auth_provider=PlainTextAuthProvider(
                    self._config.astra_client_id,
                    self._config.astra_client_secret,
                ),
                execution_profiles={EXEC_PROFILE_DEFAULT: ExecutionProfile(**profile_options)},
            )

        logger.warning(
            "Configuring Cassandra client for local mode without authentication",
            contact_points=self._config.cassandra_contact_points,
            datacenter=self._config.cassandra_datacenter,
        )
        profile_options["load_balancing_policy"] = DCAwareRoundRobinPolicy(
            local_dc=self._config.cassandra_datacenter
        )
        return Cluster(
            contact_points=self._config.cassandra_contact_points,
            port=self._config.cassandra_port,
            execution_profiles={EXEC_PROFILE_DEFAULT: ExecutionProfile(**profile_options)},
        )

    async def _open_session(self) -> Any:
        # A cluster that failed to connect shuts itself down and cannot be reused.
        cluster = self._build_cluster()
        try:
            session = await asyncio.to_thread(cluster.connect)
        except Exception:
            await asyncio.to_thread(cluster.shutdown)
            raise
        self._cluster = cluster
        return session

    async def connect(self) -> None:
        """Connect to the cluster, retrying while no host is available.

        Raises:
            StoreConnectionError: No host became available within the retry budget.
        """
        if self._session is not None:
            return

        from cassandra.cluster import NoHostAvailable

        logger.info("Connecting to Cassandra", mode=self._config.cassandra_mode)
        self._session = await connect_with_retry(
            self._open_session,
            max_attempts=self._config.connect_max_attempts,
            delay_seconds=self._config.connect_retry_delay_seconds,
            retry_on=(NoHostAvailable,),
        )
        logger.info("Connected to Cassandra", keyspace=self.keyspace)

    async def shutdown(self) -> None:
        cluster = self._cluster
        self._cluster = None
        self._session = None
        self._prepared.clear()
        if cluster is not None:
            await asyncio.to_thread(cluster.shutdown)
            logger.info("Cassandra connection closed")

    def _require_session(self) -> Any:
        if self._session is None:
            raise RuntimeError("Cassandra session is not connected")
        return self._session

    async def _prepare(self, query: str) -> Any:
        statement = self._prepared.get(query)
        if statement is None:
            session = self._require_session()
            statement = await asyncio.to_thread(session.prepare, query)
            self._prepared[query] = statement
        return statement

    async def execute(
        self,
        query: str,
        parameters: Sequence[Any] = (),
        *,
        fetch_size: int | None = None,
        paging_state: bytes | None = None,
    ) -> StorePage:
        """Run a prepared statement and return its first (or resumed) page."""
        session = self._require_session()
        statement = (await self._prepare(query)).bind(list(parameters))
        if fetch_size is not None:
            statement.fetch_size = fetch_size

        result = await _as_asyncio(session.execute_async(statement, paging_state=paging_state))
        return StorePage(rows=list(result.current_rows), paging_state=result.paging_state)

    async def execute_schema(self, query: str) -> None:
        """Run an unprepared statement (DDL, TRUNCATE)."""
        from cassandra.query import SimpleStatement

        session = self._require_session()
        summary = query.split("(")[0].strip()
        async with async_log_timing("schema_statement", logger=logger, level="info", statement=summary):
            await _as_asyncio(session.execute_async(SimpleStatement(query)))

    async def ensure_schema(self) -> None:
        """Create the keyspace (local mode only), the documents table and its indexes."""
        if self._config.cassandra_mode == "astra":
            logger.info("Using existing Astra keyspace", keyspace=self.keyspace)
        else:
            await self.execute_schema(
                f"CREATE KEYSPACE IF NOT EXISTS {self.keyspace} "
                "WITH replication = {'class': 'SimpleStrategy', 'replication_factor': 1}"
            )

        await self.execute_schema(create_table_cql(self.keyspace))
        for statement in create_index_cql(self.keyspace):
            await self.execute_schema(statement)
        logger.info("Documents table verified", table=self.table)

    async def ping(self) -> bool:
        try:
            page = await self.execute("SELECT release_version FROM system.local")
        except Exception as exc:
            logger.warning("Cassandra ping failed", error=str(exc), error_type=type(exc).__name__)
            return False
        return bool(page.rows)

    async def truncate(self) -> None:
        await self.execute_schema(f"TRUNCATE {self.table}")

    async def count(self) -> int:
        page = await self.execute(f"SELECT COUNT(*) AS total FROM {self.table}")
        return int(page.rows[0]["total"]) if page.rows else 0


store = StoreClient()


def get_store() -> StoreClient:
    """Dependency for the shared store client."""
    return store
