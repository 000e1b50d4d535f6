"""FastAPI integration: answer :class:`DataError` with the mapped status.

Requires the ``fastapi`` optional dependency:
    pip install crud-repository[fastapi]
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from crud_repository.exceptions import DataError
from crud_repository.mapper import ErrorClass, map_error

logger = logging.getLogger(__name__)


async def data_error_handler(request: Request, exc: DataError) -> JSONResponse:
    """Render a repository error as ``{"detail": message}`` with a 409 or 500 status."""
    error_class, message = map_error(exc)
    if error_class is ErrorClass.INTERNAL:
        logger.error("%s %s -> %s", request.method, request.url.path, type(exc).__name__)
    return JSONResponse(status_code=error_class.status_code, content={"detail": message})


def install_exception_handlers(app: FastAPI) -> None:
    """Register :func:`data_error_handler` on *app*."""
    app.add_exception_handler(DataError, data_error_handler)
