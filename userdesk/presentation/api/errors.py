"""Translation of domain and framework errors into JSON responses."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...core.config import Settings
from ...domain.errors import Conflict, NotFound, PoolExhausted, StoreError, ValidationError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, details: Optional[Any] = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install one handler per error kind plus a catch-all that never re-raises."""

    def internal_detail(exc: Exception) -> Optional[str]:
        return str(exc) if settings.is_development else None

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid user payload", exc.as_details())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            status.HTTP_400_BAD_REQUEST, "Invalid request body", _describe(exc.errors())
        )

    @app.exception_handler(NotFound)
    async def handle_not_found(request: Request, exc: NotFound) -> JSONResponse:
        return error_response(status.HTTP_404_NOT_FOUND, "User not found")

    @app.exception_handler(Conflict)
    async def handle_conflict(request: Request, exc: Conflict) -> JSONResponse:
        return error_response(status.HTTP_409_CONFLICT, str(exc), {"field": exc.field})

    @app.exception_handler(PoolExhausted)
    async def handle_pool_exhausted(request: Request, exc: PoolExhausted) -> JSONResponse:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Database busy", internal_detail(exc)
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error", internal_detail(exc)
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # A known path with an unregistered method is just another unmatched route.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return error_response(status.HTTP_404_NOT_FOUND, "route not found")
        return error_response(exc.status_code, str(exc.detail))

    @app.middleware("http")
    async def catch_unhandled(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "internal server error",
                internal_detail(exc),
            )


def _describe(errors: Any) -> List[Dict[str, str]]:
    described = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        described.append({"field": ".".join(loc) or "body", "message": error.get("msg", "")})
    return described
