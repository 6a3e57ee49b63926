"""Trace Docs API: asset-trace documents on Cassandra behind a FastAPI service."""

__version__ = "0.1.0"
