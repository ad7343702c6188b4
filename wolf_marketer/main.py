import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text

from wolf_marketer.config import settings
from wolf_marketer.db.base import engine, init_db
from wolf_marketer.routers import activities, opportunities, payments, platforms, reports, tasks, workflows
from wolf_marketer.services.errors import BusinessRuleError, MarketerError
from wolf_marketer.storage.deps import get_memory_storage
from wolf_marketer.storage.seed import seed_demo_data

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


@asynccontextmanager
async def _app_lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if settings.STORAGE_BACKEND == "memory":
        if settings.SEED_DEMO_DATA and not get_memory_storage().list_platforms():
            seed_demo_data(get_memory_storage())
    elif settings.is_sqlite:
        init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Wolf Auto Marketer API",
        default_response_class=ORJSONResponse,
        lifespan=_app_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, exc: RequestValidationError) -> ORJSONResponse:
        return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": _validation_message(exc)})

    @app.exception_handler(MarketerError)
    async def handle_marketer_error(request: Request, exc: MarketerError) -> ORJSONResponse:
        content = {"detail": str(exc)}
        if isinstance(exc, BusinessRuleError):
            content.update(exc.context)
        if exc.status_code >= 500:
            logger.warning(
                "api.upstream_error",
                extra={"path": request.url.path, "status_code": exc.status_code, "error": str(exc)},
            )
        return ORJSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("api.unhandled_error", extra={"path": request.url.path})
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error."},
        )

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/health/db")
    def health_db() -> dict[str, str]:
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return {"db": "ok"}
        except Exception as exc:  # pragma: no cover - simple runtime check
            return {"db": f"error: {exc}"}

    app.include_router(platforms.router)
    app.include_router(workflows.router)
    app.include_router(tasks.router)
    app.include_router(activities.router)
    app.include_router(reports.router)
    app.include_router(payments.router)
    app.include_router(opportunities.router)

    return app


app = create_app()
