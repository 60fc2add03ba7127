from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from stepwise.api.routers import api_router
from stepwise.config import Settings, settings as default_settings
from stepwise.db import Database
from stepwise.services.errors import CsvImportError, ServiceError


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None, *, database: Database | None = None) -> FastAPI:
    """Build the application.

    The database handle is created here (or handed in by the caller) and lives
    on ``app.state.database`` for the lifetime of the app; request handlers get
    sessions from it through ``get_db``.
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        if settings.DATABASE_AUTO_CREATE:
            await db.create_all()
        app.state.database = db
        logger.info("Database ready (%s)", db.url.get_backend_name())
        try:
            yield
        finally:
            await db.dispose()

    app = FastAPI(title="Stepwise", default_response_class=ORJSONResponse, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError) -> ORJSONResponse:
        content: dict = {"detail": exc.detail}
        if isinstance(exc, CsvImportError):
            content["errors"] = exc.errors
        return ORJSONResponse(status_code=int(exc.status_code), content=content)

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
