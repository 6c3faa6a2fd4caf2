from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shelfscan.api.container import ServiceContainer, build_container
from shelfscan.api.routes.detection import router as detection_router
from shelfscan.api.routes.health import router as health_router
from shelfscan.api.routes.maintenance import router as maintenance_router
from shelfscan.config.settings import Settings
from shelfscan.database.connection import close_pool, init_pool
from shelfscan.logging.logger import Log
from shelfscan.pipeline.exceptions import DetectionError, ErrorCode


def create_app(
    settings: Settings | None = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """Build the HTTP app.

    With ``container`` given the app uses it as-is and leaves the database
    pool alone, which is how tests run it.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if container is not None:
            yield
            return
        Log.configure(settings.log_level)
        init_pool(settings)
        app.state.container = build_container(settings)
        try:
            yield
        finally:
            app.state.container.dispatcher.shutdown()
            close_pool()

    app = FastAPI(title="Shelfscan", lifespan=lifespan)
    if container is not None:
        app.state.container = container

    @app.exception_handler(DetectionError)
    async def detection_error_handler(request: Request, exc: DetectionError) -> JSONResponse:
        Log.warning(f"{request.method} {request.url.path} rejected with {exc.code.value}: {exc}")
        return JSONResponse(status_code=exc.code.status_code, content=exc.code.to_response())

    @app.exception_handler(psycopg.Error)
    async def database_error_handler(request: Request, exc: psycopg.Error) -> JSONResponse:
        Log.error(f"{request.method} {request.url.path} database error: {exc}")
        code = ErrorCode.DATABASE_ERROR
        return JSONResponse(status_code=code.status_code, content=code.to_response())

    app.include_router(detection_router)
    app.include_router(maintenance_router)
    app.include_router(health_router)
    return app
