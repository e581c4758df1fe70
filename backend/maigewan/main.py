import logging
import uuid
from contextlib import asynccontextmanager
from typing import Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from maigewan.api.admin import router as admin_router
from maigewan.api.auth import router as auth_router
from maigewan.api.image_gen import router as image_gen_router
from maigewan.api.layout import router as layout_router
from maigewan.api.my import router as my_router
from maigewan.core.config import APP_VERSION, settings
from maigewan.core.errors import HTTPError, http_error_handler, request_validation_error_handler
from maigewan.core.logging import setup_logging
from maigewan.core.middleware import PocketBaseSessionMiddleware
from maigewan.services.pocketbase import PocketBaseClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown."""
    setup_logging()

    if not settings.has_superuser_credentials:
        logger.warning(
            "POCKETBASE_SUPERUSER_EMAIL/POCKETBASE_SUPERUSER_PASSWORD not set; "
            "login logs will be written with the visitor's own permissions"
        )
    if not settings.OPENAI_API_KEY:
        logger.info("OPENAI_API_KEY not set; image generation is disabled")

    logger.info(f"Starting {settings.APP_NAME} {APP_VERSION} against {settings.POCKETBASE_URL}")

    yield

    logger.info("Shutting down")


async def add_request_id(request: Request, call_next):
    """Add unique request ID for tracking and debugging."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()

    response.headers["X-Request-ID"] = request_id
    return response


async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if not settings.DEBUG:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


def create_app(pocketbase_factory: Callable[[], PocketBaseClient] = PocketBaseClient) -> FastAPI:
    """
    Build the application.

    Args:
        pocketbase_factory: Builds the per-request PocketBase client
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        redirect_slashes=False,
    )

    app.add_exception_handler(HTTPError, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    # Added first so it runs innermost, after the request ID is bound
    app.add_middleware(PocketBaseSessionMiddleware, client_factory=pocketbase_factory)
    app.middleware("http")(add_security_headers)
    app.middleware("http")(add_request_id)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": APP_VERSION}

    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(my_router)
    app.include_router(layout_router)
    app.include_router(image_gen_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
