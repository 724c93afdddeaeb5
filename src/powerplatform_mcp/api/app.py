"""FastAPI application factory for the HTTP invoke API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from powerplatform_mcp.config.schema import PowerPlatformMcpConfig
    from powerplatform_mcp.service.base import DataverseService


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the Dataverse client on startup unless one was injected."""
    from powerplatform_mcp.service.client import PowerPlatformService
    from powerplatform_mcp.tools import build_registry

    owns_service = getattr(app.state, "registry", None) is None
    if owns_service:
        config: PowerPlatformMcpConfig = app.state.config
        app.state.registry = build_registry(PowerPlatformService(config.powerplatform))

    yield

    if owns_service:
        await app.state.registry.service.aclose()


async def _validation_error(request: Request, exc: Exception) -> JSONResponse:
    """Keep the ``{"error": ...}`` body shape for unparseable requests."""
    if isinstance(exc, RequestValidationError):
        detail = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
    else:
        detail = str(exc)
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {detail}"})


def create_app(
    config: PowerPlatformMcpConfig | None = None,
    service: DataverseService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Loaded configuration; discovered with ``load_config`` if None.
        service: Dataverse service to bind the tools to. When None the
            lifespan builds a ``PowerPlatformService`` from config.
    """
    from powerplatform_mcp import __version__
    from powerplatform_mcp.config.loader import load_config

    if config is None:
        config = load_config()

    app = FastAPI(
        title="powerplatform-mcp",
        description="Dataverse read tools over HTTP",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    if service is not None:
        from powerplatform_mcp.tools import build_registry

        app.state.registry = build_registry(service)

    from fastapi.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _validation_error)

    from powerplatform_mcp.api.health import router as health_router
    from powerplatform_mcp.api.routes.invoke import router as invoke_router

    app.include_router(invoke_router)
    app.include_router(health_router)

    return app
