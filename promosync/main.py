"""
Promodata to WooCommerce Sync - Main Application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings, settings
from .dependencies import init_dependencies
from .errors import SyncServiceError
from .routes import settings_router, sync_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_error_handlers(app: FastAPI) -> None:
    """Map every error to a {"error": message} body."""

    @app.exception_handler(SyncServiceError)
    async def service_error_handler(request: Request, exc: SyncServiceError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body') or 'body'}: {err.get('msg')}"
            for err in exc.errors()
        )
        return _error(400, f"Invalid request: {problems}")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return _error(404, f"Not Found: Cannot {request.method} {request.url.path}")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error(500, str(exc) or exc.__class__.__name__)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Build the application with its own store and job runner."""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown."""
        logger.info("Starting Promodata to WooCommerce sync service...")
        init_dependencies(app, config)
        logger.info("Application ready")
        yield
        active = app.state.runner.active_tasks
        if active:
            logger.warning(f"Shutting down with {active} sync job(s) still running")
        logger.info("Shutting down...")

    app = FastAPI(
        title="Promodata WooCommerce Sync",
        description="Sync Promodata catalog products into a WooCommerce store",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Include routers
    app.include_router(settings_router)
    app.include_router(sync_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        """Health text."""
        return "Promodata to WooCommerce sync service is running."

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "promosync.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
