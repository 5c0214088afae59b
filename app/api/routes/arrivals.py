# app/api/routes/arrivals.py
from datetime import date as date_type
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies.engine import (
    get_appointment_repository,
    get_engine_config,
    get_scan_repository,
)
from app.core.config import EngineConfig
from app.repositories.base import AppointmentRepository, RepositoryError, ScanRepository
from app.schemas.arrival import BackfillResult
from app.services.arrival_backfill import backfill_arrivals
from app.services.timezones import get_zone

router = APIRouter(prefix="/arrivals", tags=["Arrivals"])


@router.post(
    "/backfill",
    response_model=BackfillResult,
    status_code=HTTPStatus.OK,
    summary="Record facilitator arrival status for past appointments",
    description=(
        "Classify facilitator arrival for non-canceled appointments in the "
        "given date range and store the outcome on each appointment.\n\n"
        "Behavior:\n"
        "- Defaults to the last `ARRIVAL_BACKFILL_DAYS` days (site time zone) "
        "ending today.\n"
        "- Appointments that already carry an arrival status are skipped "
        "unless `force=true`.\n"
        "- Appointments whose arrival window has not closed yet are skipped.\n"
        "- When no access-scan source is configured, nothing is written and "
        "`available` is false.\n\n"
        "Safe to call repeatedly; without `force` it is idempotent."
    ),
    responses={
        200: {
            "description": "Backfill completed.",
            "content": {
                "application/json": {
                    "example": {
                        "start_date": "2025-11-01",
                        "end_date": "2025-11-07",
                        "updated": 14,
                        "skipped": 3,
                        "available": True,
                    }
                }
            },
        },
        400: {"description": "end_date is before start_date."},
        503: {"description": "Appointments could not be loaded."},
    },
)
async def run_arrival_backfill(
    start_date: Optional[date_type] = Query(
        None,
        description="First day (inclusive), YYYY-MM-DD. Defaults to the backfill window start.",
        examples=["2025-11-01"],
    ),
    end_date: Optional[date_type] = Query(
        None,
        description="Last day (inclusive), YYYY-MM-DD. Defaults to today.",
        examples=["2025-11-07"],
    ),
    force: bool = Query(False, description="Re-classify appointments that already have a status."),
    appointments: AppointmentRepository = Depends(get_appointment_repository),
    scans: Optional[ScanRepository] = Depends(get_scan_repository),
    config: EngineConfig = Depends(get_engine_config),
) -> BackfillResult:
    today = datetime.now(tz=timezone.utc).astimezone(get_zone(config.site_timezone)).date()
    end = end_date or today
    start = start_date or end - timedelta(days=config.backfill_days - 1)

    try:
        return await backfill_arrivals(appointments, scans, config, start, end, force=force)
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Appointments are temporarily unavailable.",
        ) from exc
