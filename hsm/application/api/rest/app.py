"""ASGI application factory.

Run with ``uvicorn --factory hsm.application.api.rest.app:create_app``.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import logfire
from dishka import AsyncContainer
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hsm.application.api.v1.errors import map_hsm_error
from hsm.application.api.v1.routes import auth
from hsm.application.di import create_container
from hsm.config import Config, configure_logging
from hsm.domain.shared.authorization.startup import validate_all_handlers
from hsm.domain.shared.error import HSMError
from hsm.infrastructure.auth.sweeper import StateSweeper
from hsm.infrastructure.persistence.migrate import run_migrations
from hsm.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    container: AsyncContainer = app.state.dishka_container
    config = await container.get(Config)

    if config.database.auto_migrate:
        await asyncio.to_thread(run_migrations, config.database.url)

    sweeper = await container.get(StateSweeper)
    await sweeper.start()
    try:
        yield
    finally:
        await sweeper.stop()
        await container.close()


async def handle_hsm_error(request: Request, exc: HSMError) -> JSONResponse:
    http_exc = map_hsm_error(exc)
    if http_exc.status_code >= 500:
        logger.error("%s %s failed: code=%s, %s", request.method, request.url.path, exc.code, exc)
    return JSONResponse(http_exc.detail, status_code=http_exc.status_code, headers=http_exc.headers)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"success": False, "code": "internal_error", "message": "Internal server error"},
        status_code=500,
    )


def create_app(config: Config | None = None, container: AsyncContainer | None = None) -> FastAPI:
    """Build the app. Tests pass their own config and container."""
    config = config or Config()  # type: ignore[call-arg]
    configure_logging(config.logging)
    logger.info("Starting %s v%s", config.server.name, config.server.version)

    # Refuse to start if any non-public handler lacks an auth gate
    validate_all_handlers()

    app = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
        exception_handlers={
            HSMError: handle_hsm_error,
            Exception: handle_unexpected_error,
        },
    )
    logfire.instrument_httpx()
    logfire.instrument_fastapi(app)

    setup_dishka(container or create_container(config), app)
    app.include_router(auth.router, prefix=API_PREFIX)
    return app
