"""Application entry point and FastAPI app factory."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config.settings import Settings, get_settings
from .controllers import analytics, contact
from .database import Database
from .middleware import (
    OriginGuardMiddleware,
    OriginPolicy,
    StructuredLoggingMiddleware,
    TelemetryMiddleware,
)
from .services.client_metadata import ClientIpResolver
from .services.contact import ContactRelay, Mailer
from .services.email import SmtpMailer
from .services.geo import GeoIpClient
from .services.identity import IdentityResolver
from .services.views import GeoLookup, ViewRecorder
from .views import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)


def _configure_logging(settings: Settings) -> None:
    """Stream application logs to stdout and, when configured, a rotating file."""

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=1_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    middleware_logger = logging.getLogger("portfolio_api.middleware.structured")
    middleware_logger.handlers.clear()
    middleware_stdout = logging.StreamHandler(sys.stdout)
    middleware_stdout.setFormatter(logging.Formatter("%(message)s"))
    middleware_logger.addHandler(middleware_stdout)
    middleware_logger.setLevel(logging.INFO)
    middleware_logger.propagate = False

    noisy_loggers = [
        "httpx",
        "httpcore",
        "sqlalchemy.engine",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def create_app(
    settings: Optional[Settings] = None,
    *,
    geo_client: Optional[GeoLookup] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    _configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        description="Portfolio analytics and contact backend",
    )

    database = Database(settings.database, debug=settings.debug)
    owned_http_client: Optional[httpx.AsyncClient] = None
    if geo_client is None:
        owned_http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.geoip.timeout_seconds),
        )
        geo_client = GeoIpClient(settings.geoip, http_client=owned_http_client)

    app.state.settings = settings
    app.state.database = database
    app.state.view_recorder = ViewRecorder(
        database=database,
        identity=IdentityResolver(settings.security),
        ip_resolver=ClientIpResolver(settings.client_ip),
        geo_client=geo_client,
    )
    app.state.contact_relay = ContactRelay(mailer or SmtpMailer(settings.mail))

    origin_policy = OriginPolicy(settings.cors_origins, settings.cors_preview_suffix)

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        StructuredLoggingMiddleware,
        secret_key=settings.security.secret_key.get_secret_value(),
    )
    app.add_middleware(OriginGuardMiddleware, policy=origin_policy)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=origin_policy.origin_regex(),
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.include_router(analytics.router)
    app.include_router(contact.router)

    @app.get("/", include_in_schema=False, response_class=PlainTextResponse)
    async def root() -> str:
        """Uptime probe."""

        return "ok"

    @app.get("/health", include_in_schema=False, response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""

        return HealthResponse(
            status="healthy",
            service=settings.app_name,
            version=settings.app_version,
        )

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose application metrics for Prometheus scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(detail=str(exc.detail)).model_dump(exclude_none=True),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(detail="Internal server error").model_dump(exclude_none=True),
        )

    @app.on_event("startup")
    async def startup_event() -> None:
        await database.init_models()
        logger.info("%s listening on port %s", settings.app_name, settings.port)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        if owned_http_client is not None:
            await owned_http_client.aclose()
        await database.dispose()

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "portfolio_api.main:app",
        host=get_settings().host,
        port=get_settings().port,
        reload=get_settings().debug,
    )
