"""API routers package."""

from trace_docs.routers import documents

__all__ = ["documents"]
