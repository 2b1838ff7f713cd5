"""HTTP mapping for marketplace errors.

Protean's own handlers cover ValidationError (400) and ObjectNotFoundError
(404); the marketplace taxonomy is layered on top. A write that loses an
optimistic-concurrency race at commit time is a conflict like any other.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from marketplace.errors import (
    ConflictError,
    DependencyError,
    MarketplaceError,
    NoEligibleShopError,
    PermissionDeniedError,
)

logger = structlog.get_logger(__name__)

_STATUS_CODES = {
    PermissionDeniedError: 403,
    NoEligibleShopError: 404,
    ConflictError: 409,
    DependencyError: 502,
}


def _error_body(exc: MarketplaceError) -> dict:
    body = {"error": exc.messages}
    if isinstance(exc, ConflictError) and exc.current_status is not None:
        body["current_status"] = exc.current_status
    return body


def register_marketplace_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)

    async def handle_marketplace_error(request: Request, exc: MarketplaceError) -> JSONResponse:
        status_code = _STATUS_CODES.get(type(exc), 400)
        if status_code >= 500:
            logger.error("Upstream dependency failed", path=request.url.path, error=exc.messages)
        return JSONResponse(status_code=status_code, content=_error_body(exc))

    async def handle_version_conflict(request: Request, exc: ExpectedVersionError) -> JSONResponse:
        logger.info("Concurrent write rejected", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=409,
            content={"error": {"_entity": ["Changed concurrently by another request, retry"]}},
        )

    for exc_class in _STATUS_CODES:
        app.add_exception_handler(exc_class, handle_marketplace_error)
    app.add_exception_handler(ExpectedVersionError, handle_version_conflict)
