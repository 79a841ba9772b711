import logging

import uvicorn
from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from templatex.api.routes import router
from templatex.core.config import Settings
from templatex.core.config import settings as default_settings
from templatex.core.exceptions import ServiceError
from templatex.core.exceptions import SessionNotFound
from templatex.core.exceptions import TemplateNotFound
from templatex.core.factory import create_http_client
from templatex.core.factory import create_registry
from templatex.core.logging import setup_logging
from templatex.generation_logic.template_session import SessionRegistry

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, registry: SessionRegistry | None = None) -> FastAPI:
    """Build the FastAPI application.

    When *registry* is omitted, the service clients are built from *settings*
    on startup and the HTTP client is closed on shutdown.
    """
    settings = settings or default_settings
    app = FastAPI(title="templatex")
    app.state.registry = registry

    @app.on_event("startup")
    async def startup_event() -> None:
        if app.state.registry is None:
            app.state.http_client = create_http_client(settings)
            app.state.registry = create_registry(settings, app.state.http_client)
        logger.info("Application startup - templates prefix %s, model %s", settings.templates_prefix, settings.model_id)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        http_client = getattr(app.state, "http_client", None)
        if http_client is not None:
            await http_client.aclose()
        logger.info("Application shutdown")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
        return JSONResponse(
            {"error": "Input validation failed", "details": exc.errors()},
            status_code=422,
        )

    @app.exception_handler(SessionNotFound)
    async def session_not_found_handler(_request: Request, exc: SessionNotFound) -> JSONResponse:
        logger.warning(f"Session lookup failed: {str(exc)}")
        return JSONResponse({"error": str(exc)}, status_code=404)

    @app.exception_handler(TemplateNotFound)
    async def template_not_found_handler(_request: Request, exc: TemplateNotFound) -> JSONResponse:
        logger.warning(f"Template lookup failed: {str(exc)}")
        return JSONResponse({"error": str(exc)}, status_code=404)

    @app.exception_handler(ServiceError)
    async def service_exception_handler(_request: Request, exc: ServiceError) -> JSONResponse:
        logger.error(f"Service error: {str(exc)}")
        return JSONResponse({"error": str(exc)}, status_code=500)

    @app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
    async def health_check() -> dict[str, str]:
        logger.info("Health check endpoint called")
        return {"status": "ok"}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_methods=["POST", "GET", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


def run() -> None:
    """Console entry point: serve the app factory with uvicorn."""
    setup_logging()
    uvicorn.run("templatex.main:create_app", factory=True, host="0.0.0.0", port=8000, log_config=None)
