from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from relay.config import Settings, settings
from relay.errors import BadRequestError, RelayError
from relay.middleware.logging import LoggingMiddleware
from relay.middleware.rate_limit import limiter
from relay.routers import secrets
from relay.services.secret_service import TokenGenerator, generate_token
from relay.services.storage_service import SecretStore, create_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the store client on shutdown."""
    yield
    await app.state.store.close()


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


def is_secret_path(path: str) -> bool:
    return path == "/v1/secret" or path.startswith("/v1/secret/")


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Any verb the secret routes do not serve is a bad request, not a 405."""
    if exc.status_code == 405 and is_secret_path(request.url.path):
        return await relay_error_handler(request, BadRequestError())
    return await http_exception_handler(request, exc)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"message": f"Rate limit exceeded: {exc.detail}"})


def create_app(
    app_settings: Settings | None = None,
    store: SecretStore | None = None,
    token_generator: TokenGenerator | None = None,
) -> FastAPI:
    """
    Build the relay application.

    The store is injected rather than global so tests can pass an in-memory
    one. Without an explicit store a memcached store is built from settings,
    which raises StoreConfigError when MEMCACHED is not set.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Secret Relay",
        description="Ephemeral one-time secret sharing",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.store = store if store is not None else create_store(app_settings)
    app.state.token_generator = token_generator or generate_token

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    # Routers
    app.include_router(secrets.router, prefix="/v1", tags=["secrets"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # UI last so it never shadows the API
    if Path(app_settings.public_dir).is_dir():
        app.mount("/", StaticFiles(directory=app_settings.public_dir, html=True), name="ui")

    return app
