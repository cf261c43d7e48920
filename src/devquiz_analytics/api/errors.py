"""Mapping of analytics exceptions to JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from devquiz_analytics.errors import AnalyticsError, ValidationError

logger = structlog.get_logger()


async def analytics_error_handler(request: Request, exc: AnalyticsError) -> JSONResponse:
    logger.warning(
        "application_error",
        path=request.url.path,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
    )
    error: dict = {"message": exc.message, "code": exc.code}
    if isinstance(exc, ValidationError) and exc.details:
        error["details"] = exc.details
    return JSONResponse({"error": error}, status_code=exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(
        {"error": {"message": "Internal server error", "code": "INTERNAL_ERROR"}},
        status_code=500,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AnalyticsError, analytics_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
