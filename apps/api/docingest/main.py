"""FastAPI application entrypoint.

The store starts empty; there are no user or document routes. Set
``DOCINGEST_SEED_PATH`` to a JSON seed file (see ``docingest.schemas.seed``) to
bootstrap users and documents when the app is created.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from docingest.core.config import get_settings
from docingest.core.logging import configure_logging
from docingest.errors import ApiError
from docingest.repositories.memory import InMemoryStore
from docingest.repositories.seed import seed_store_from_file
from docingest.routes import ingestion_router
from docingest.schemas.error import ErrorResponse
from docingest.services.execution import JobExecutionDriver


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    app.state.driver.shutdown(wait=False)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Document Ingestion API", version="1.0.0", lifespan=_lifespan)
    app.state.store = InMemoryStore()
    if settings.seed_path is not None:
        seed_store_from_file(app.state.store, settings.seed_path)
    app.state.driver = JobExecutionDriver(app.state.store, max_workers=settings.ingestion_worker_count)

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        payload = ErrorResponse(
            code="VALIDATION_ERROR",
            message="Invalid request payload",
            details={"errors": [{"loc": list(error["loc"]), "msg": error["msg"]} for error in exc.errors()]},
        )
        return JSONResponse(status_code=400, content=payload.model_dump(mode="json"))

    app.include_router(ingestion_router, prefix="/api/v1")

    return app


app = create_app()
