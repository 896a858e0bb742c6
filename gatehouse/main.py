"""
gatehouse main application.
"""

import time
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from starlette.middleware.sessions import SessionMiddleware
import uvicorn

from gatehouse import __version__
from gatehouse.core.config import Settings, load_merged_config
from gatehouse.core.dependencies import create_user_provider, initialize_provider
from gatehouse.api.v1.auth import router as auth_router
from gatehouse.observability.logging import setup_logging
from gatehouse.observability.metrics import get_metrics_collector

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to run with; loaded from env and config files when omitted
    """
    settings = settings or load_merged_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_logging(settings.log_level, settings.log_format)

        user_provider = create_user_provider(settings)
        metrics = get_metrics_collector() if settings.enable_metrics else None
        initialize_provider(user_provider, settings, metrics)
        app.state.user_provider = user_provider

        logger.info(f"gatehouse started with guard '{settings.guard_name}'")
        logger.info(f"Using user provider: {settings.user_provider}")

        yield

        logger.info("gatehouse shutdown complete")

    app = FastAPI(
        title="gatehouse",
        description="Session authentication guard with remember-me tokens",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site=settings.cookie_samesite,
        https_only=settings.cookie_secure,
        domain=settings.cookie_domain,
    )

    @app.middleware("http")
    async def timing_middleware(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response

    app.include_router(auth_router, prefix="/api/v1")

    @app.get("/", tags=["Health"])
    def read_root():
        """Root endpoint providing service info."""
        return {
            "service": "gatehouse",
            "version": __version__,
            "status": "running"
        }

    @app.get("/health", tags=["Health"])
    @app.get("/healthz", tags=["Health"])
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/readyz", tags=["Health"])
    def readiness_check(request: Request):
        """Readiness check endpoint."""
        ready = getattr(request.app.state, "user_provider", None) is not None
        return {"status": "ready" if ready else "starting"}

    @app.get("/metrics", tags=["Observability"])
    def metrics():
        """Prometheus metrics endpoint."""
        if not settings.enable_metrics:
            return Response(status_code=404)
        collector = get_metrics_collector()
        return Response(content=collector.get_metrics(), media_type=collector.content_type)

    return app


def main():
    """Main entry point for the application."""
    import argparse

    parser = argparse.ArgumentParser(description="gatehouse session authentication service")
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to bind to")
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("--log-level", help="Log level")

    args = parser.parse_args()

    settings = load_merged_config(args.config)
    if args.host:
        settings.host = args.host
    if args.port:
        settings.port = args.port
    if args.log_level:
        settings.log_level = args.log_level

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
