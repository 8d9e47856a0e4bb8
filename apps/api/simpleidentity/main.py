"""FastAPI application entrypoint."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import httpx

from simpleidentity.adapters.auth.registry import ProviderRegistry, build_registry
from simpleidentity.core.config import Settings, get_settings
from simpleidentity.errors import ApiError
from simpleidentity.repositories.memory import InMemoryKeyValueStore
from simpleidentity.repositories.store import KeyValueStore
from simpleidentity.routes import auth_router, health_router

logger = logging.getLogger(__name__)

_AUTH_VALIDATION_PATHS: set[tuple[str, str]] = {
    ("POST", "/api/v1/auth/authenticate"),
}


def create_app(
    settings: Settings | None = None,
    *,
    registry: ProviderRegistry | None = None,
    store: KeyValueStore | None = None,
) -> FastAPI:
    settings = settings if settings is not None else get_settings()
    http_client: httpx.Client | None = None
    if registry is None:
        http_client = httpx.Client(timeout=settings.http_timeout_s)
        registry = build_registry(settings, http_client=http_client)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if http_client is not None:
            http_client.close()

    app = FastAPI(title="SimpleIdentity API", version=settings.version, lifespan=lifespan)
    app.state.store = store if store is not None else InMemoryKeyValueStore()
    app.state.registry = registry
    app.state.http_client = http_client

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        route = request.scope.get("route")
        route_path = getattr(route, "path", request.url.path)
        if (request.method.upper(), route_path) in _AUTH_VALIDATION_PATHS:
            return await handle_api_error(request, ApiError.validation_failed())

        return await request_validation_exception_handler(request, exc)

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(health_router)

    logger.info(
        "app.created version=%s providers=%s",
        settings.version,
        ",".join(provider_type.value for provider_type in registry.registered()),
    )
    return app


app = create_app()
