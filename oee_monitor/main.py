"""
OEE Monitor - FastAPI Application

Serves the shift-window and OEE accounting engine to the reporting layer.
Every request carries the interval snapshot it is computed from; nothing is
persisted between requests.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.responses import Response
import structlog

from oee_monitor import __version__
from oee_monitor.api.v1 import dashboard, oee
from oee_monitor.config import settings
from oee_monitor.logging_config import configure_logging
from oee_monitor.monitoring.metrics import metrics
from oee_monitor.utils.exceptions import OEEMonitorException

configure_logging(settings.LOG_LEVEL, json_output=not settings.DEBUG)

logger = structlog.get_logger()


def _error_body(error: str, message: str, details: Any) -> Dict[str, Any]:
    return {"error": error, "message": message, "details": details}


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


async def handle_oee_monitor_exception(request: Request, exc: OEEMonitorException) -> JSONResponse:
    """Render domain exceptions with their own status code."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        error_code=exc.error_code,
        message=exc.message,
        path=request.url.path
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code, exc.message, exc.details)
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body validation failures as 422."""
    details = _validation_details(exc)
    logger.warning("Request validation failed", errors=details, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", details)
    )


def create_app() -> FastAPI:
    """Build the API application with routers, handlers and operational endpoints."""
    expose_docs = settings.ENVIRONMENT != "production"

    application = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Shift-window resolution and OEE accounting: shift windows across "
            "midnight, Availability/Performance/Quality/OEE, machine reports "
            "with state timelines, and the live dashboard."
        ),
        version=__version__,
        docs_url="/docs" if expose_docs else None,
        redoc_url="/redoc" if expose_docs else None,
        openapi_url="/openapi.json" if expose_docs else None,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    application.add_exception_handler(OEEMonitorException, handle_oee_monitor_exception)
    application.add_exception_handler(RequestValidationError, handle_validation_error)

    application.include_router(oee.router, prefix="/api/v1/oee", tags=["OEE"])
    application.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["Dashboard"])

    @application.get("/health", tags=["Health"])
    async def health() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": __version__,
            "environment": settings.ENVIRONMENT,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @application.get("/metrics", tags=["Monitoring"])
    async def prometheus_metrics() -> Response:
        if not settings.ENABLE_METRICS:
            return Response(status_code=status.HTTP_404_NOT_FOUND)
        return Response(metrics.render(), media_type=CONTENT_TYPE_LATEST)

    @application.get("/", tags=["Root"])
    async def root() -> Dict[str, Any]:
        return {
            "service": settings.APP_NAME,
            "version": __version__,
            "endpoints": ["/api/v1/oee", "/api/v1/dashboard", "/health", "/metrics"],
            "docs": "/docs" if expose_docs else None
        }

    logger.info("Application created", environment=settings.ENVIRONMENT, version=__version__)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "oee_monitor.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
