"""Common exception utilities for FastAPI routers.

``detail`` may be a plain message or a dict with a ``message`` key plus
extra fields; the application's handler flattens either into the
``{code, message, ...}`` error body.
"""

from typing import Any, NoReturn

from fastapi import HTTPException, status

Detail = str | dict[str, Any]


def raise_not_found(detail: Detail, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    ) from cause


def raise_bad_request(detail: Detail, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    ) from cause


def raise_internal_error(detail: Detail, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    ) from cause


def raise_service_unavailable(detail: Detail, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=detail,
    ) from cause
