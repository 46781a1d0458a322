"""
FastAPI application factory.

The AuthClient is built by the caller (store choice is deployment-specific)
and shared through app.state. AuthError subclasses render as
{"error": public_message} with their own status code.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from brew_auth import __version__
from brew_auth.api.routes import router
from brew_auth.errors import AuthError
from brew_auth.observability import configure_logging, get_logger
from brew_auth.sdk.client import AuthClient

logger = get_logger(__name__)


def create_app(client: AuthClient) -> FastAPI:
    """Build the app around a configured AuthClient."""
    settings = client.settings
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("brew_auth.starting", version=__version__, environment=settings.environment)
        yield
        # Let pending reset deliveries finish
        client.shutdown()
        logger.info("brew_auth.shutdown")

    app = FastAPI(title="brew-auth", version=__version__, lifespan=lifespan)
    app.state.auth_client = client

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("auth_error", kind=exc.kind.value, path=request.url.path, detail=exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(router)
    return app
