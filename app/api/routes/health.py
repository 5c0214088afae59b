# app/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.core.config import get_settings


router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """
    Response schema for the health check endpoint.
    """

    status: str = Field(
        ...,
        description="Always 'ok' while the process serves requests.",
        examples=["ok"],
    )
    app_name: str = Field(
        ...,
        description="Human-friendly name of the running application.",
        examples=["Facilitator Activity"],
    )
    environment: str = Field(
        ...,
        description="Current deployment environment (local/dev/stage/prod).",
        examples=["local"],
    )
    timestamp_utc: datetime = Field(
        ...,
        description="Server-side timestamp (UTC) at which this health check was generated.",
        examples=["2025-01-01T10:30:00Z"],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness of the facilitator activity API",
    description=(
        "Reports that the API process is serving requests.\n\n"
        "The check is answered from settings alone: it does not open a "
        "database session, query access scans or reach the stats cache. "
        "A 200 here therefore says nothing about whether summaries or "
        "arrival data can currently be computed; those endpoints report "
        "storage faults themselves (503)."
    ),
    responses={
        200: {
            "description": "The API process is up.",
            "content": {
                "application/json": {
                    "example": {
                        "status": "ok",
                        "app_name": "Facilitator Activity",
                        "environment": "local",
                        "timestamp_utc": "2025-01-01T10:30:00Z",
                    }
                }
            },
        }
    },
)
async def health_check() -> HealthResponse:
    """
    Static liveness answer built from settings.
    """
    settings = get_settings()
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
