"""FastAPI application entry point."""

import logging

import structlog
import uvicorn
from fastapi import FastAPI

from devquiz_analytics.api.errors import register_error_handlers
from devquiz_analytics.api.routes import router
from devquiz_analytics.config import get_settings

settings = get_settings()

# Configure structlog based on environment
if settings.is_production:
    # Production: JSON format for machine parsing
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
else:
    # Development: console format for human readability
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

app = FastAPI(title="DevQuiz Skill Analytics", version="0.1.0")
register_error_handlers(app)
app.include_router(router)


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "devquiz_analytics.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
