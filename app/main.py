# app/main.py
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import appointments, arrivals, badges, health, stats
from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger
from app.db.session import init_db_for_startup

logger = get_logger(component="main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # pragma: no cover
    settings = get_settings()
    if settings.APP_ENV == "local":
        await init_db_for_startup()
    logger.info("app_started", app_name=settings.APP_NAME, environment=settings.APP_ENV)
    yield


def create_app() -> FastAPI:
    """
    Application factory for the Facilitator Activity service.
    """
    settings = get_settings()
    configure_logging(json_output=settings.LOG_JSON, level=settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Read-only analytics over facilitator-run appointments: activity\n"
            "statistics per facilitator and organization-wide, arrival tracking\n"
            "from access scans, effective appointment capacity and badge\n"
            "eligibility checks."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Routers
    app.include_router(health.router)
    app.include_router(stats.router)
    app.include_router(badges.router)
    app.include_router(appointments.router)
    app.include_router(arrivals.router)

    return app


app = create_app()
