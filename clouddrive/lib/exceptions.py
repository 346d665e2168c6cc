"""Litestar exception handlers rendering every failure as ``{"error": ...}``."""

import logging

from litestar import Request, Response
from litestar.exceptions import HTTPException, ValidationException
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

from clouddrive.errors import DriveError
from clouddrive.lib import observability

logger = logging.getLogger(__name__)


def drive_error_handler(request: Request, exc: DriveError) -> Response:
    """Map a DriveError to its status code and JSON body."""
    if exc.status_code >= 500:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return Response(
        content=exc.to_dict(),
        status_code=exc.status_code,
        media_type="application/json",
    )


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Render framework errors (routing, validation, size limits) in the API envelope."""
    status_code = exc.status_code
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    content: dict = {"error": detail}
    if isinstance(exc, ValidationException) and exc.extra:
        content["details"] = exc.extra

    return Response(
        content=content,
        status_code=status_code,
        media_type="application/json",
        headers=exc.headers,
    )


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Log an unexpected exception and hide its details from the client."""
    method = request.method
    path = request.url.path
    if not observability.exception("Unhandled exception on {method} {path}", method=method, path=path):
        logger.exception("Unhandled exception on %s %s", method, path)

    return Response(
        content={"error": "Internal Server Error"},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/json",
    )
