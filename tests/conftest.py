"""Test fixtures and configuration."""

import logging
import sys

import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient

from tests.fakes import InMemoryStore
from trace_docs.config import Settings
from trace_docs.services import DocumentGateway, DocumentService, SearchService


# --- Structlog Configuration for Tests ---
@pytest.fixture(autouse=True, scope="session")
def configure_structlog_for_tests():
    """Configure structlog for proper capsys capture in tests."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(),
        foreign_pre_chain=processors[:-1],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    yield

    structlog.reset_defaults()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def gateway(memory_store, test_settings) -> DocumentGateway:
    return DocumentGateway(memory_store, test_settings)


@pytest.fixture
def document_service(gateway) -> DocumentService:
    return DocumentService(gateway)


@pytest.fixture
def search_service(gateway, test_settings) -> SearchService:
    return SearchService(gateway, test_settings)


@pytest_asyncio.fixture
async def client(memory_store):
    """HTTP client against the app with the store swapped for ``memory_store``.

    ASGITransport does not run the lifespan, so no Cassandra connection is attempted.
    """
    from trace_docs.database import get_store
    from trace_docs.main import app

    app.dependency_overrides[get_store] = lambda: memory_store
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client_instance:
            yield client_instance
    finally:
        app.dependency_overrides.pop(get_store, None)
