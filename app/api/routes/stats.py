# app/api/routes/stats.py
from datetime import date as date_type
from datetime import datetime, time, timezone
from http import HTTPStatus
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.api.dependencies.engine import (
    get_engine_config,
    get_profile_repository,
    get_stats_aggregator,
)
from app.core.config import EngineConfig
from app.repositories.base import ProfileRepository, RepositoryError
from app.schemas.stats import FacilitatorDetail, SummaryOptions, SummaryResult
from app.services.appointment_stats import StatsAggregator
from app.services.term_lookup import FacilitatorTermResolver
from app.services.timezones import get_zone

router = APIRouter(prefix="/stats", tags=["Statistics"])


def _day_bounds(
    start_date: Optional[date_type],
    end_date: Optional[date_type],
    config: EngineConfig,
) -> tuple[Optional[datetime], Optional[datetime]]:
    """
    Expand inclusive calendar dates into [00:00:00, 23:59:59] in the site zone.
    """
    zone = get_zone(config.site_timezone)
    start = datetime.combine(start_date, time(0, 0, 0), tzinfo=zone) if start_date else None
    end = datetime.combine(end_date, time(23, 59, 59), tzinfo=zone) if end_date else None
    return start, end


@router.get(
    "/summary",
    response_model=SummaryResult,
    status_code=HTTPStatus.OK,
    summary="Organization-wide facilitator activity summary",
    description=(
        "Aggregate appointment statistics per facilitator and across the "
        "organization.\n\n"
        "- `start_date` / `end_date` are inclusive and interpreted in the site "
        "time zone. Either may be omitted for an open-ended range.\n"
        "- When **neither** date is given, each facilitator's statistics are "
        "bounded by their own current term (from their profile hours).\n"
        "- Canceled appointments are excluded unless `include_cancelled=true`.\n\n"
        "Arrival metrics (`arrival_rate`, per-facilitator `arrival_days`) are "
        "null when no access-scan source is configured. Results are cached for "
        "a short time; a failed appointment query yields an all-zero summary."
    ),
    responses={
        400: {
            "description": "Invalid range (start_date after end_date).",
            "content": {
                "application/json": {
                    "example": {"detail": "start_date must be on or before end_date."}
                }
            },
        },
    },
)
async def get_summary(
    start_date: Optional[date_type] = Query(
        None,
        description="First day (inclusive) of the window, YYYY-MM-DD.",
        examples=["2025-11-01"],
    ),
    end_date: Optional[date_type] = Query(
        None,
        description="Last day (inclusive) of the window, YYYY-MM-DD.",
        examples=["2025-11-30"],
    ),
    purpose: Optional[str] = Query(None, description="Restrict to one purpose tag."),
    include_cancelled: bool = Query(False, description="Count canceled appointments too."),
    host_id: Optional[int] = Query(None, description="Restrict to one facilitator."),
    aggregator: StatsAggregator = Depends(get_stats_aggregator),
    config: EngineConfig = Depends(get_engine_config),
) -> SummaryResult:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="start_date must be on or before end_date.",
        )

    start, end = _day_bounds(start_date, end_date, config)
    options = SummaryOptions(
        host_id=host_id,
        purpose=purpose,
        include_cancelled=include_cancelled,
        use_facilitator_terms=start is None and end is None,
    )
    return await aggregator.summarize(start, end, options)


@router.get(
    "/facilitators/{host_id}",
    response_model=FacilitatorDetail,
    status_code=HTTPStatus.OK,
    summary="Term-to-date and lifetime statistics for one facilitator",
    description=(
        "Return two statistics blocks for a facilitator:\n"
        "- `term`: appointments inside the facilitator's current term (or all "
        "of them when no term is configured)\n"
        "- `lifetime`: every appointment the facilitator ever hosted\n\n"
        "Either block is null when the facilitator has no matching appointments.\n\n"
        "`term_range` is the selected availability interval (current, else the "
        "most recent past, else the soonest upcoming) and `active_rule_id` the "
        "recurrence rule behind the selected recurring availability."
    ),
    responses={
        503: {"description": "Facilitator profile could not be loaded."},
    },
)
async def get_facilitator_stats(
    host_id: int = Path(..., ge=1, description="Facilitator user ID."),
    aggregator: StatsAggregator = Depends(get_stats_aggregator),
    profiles: ProfileRepository = Depends(get_profile_repository),
    config: EngineConfig = Depends(get_engine_config),
) -> FacilitatorDetail:
    terms = FacilitatorTermResolver(profiles, config)
    now = datetime.now(tz=timezone.utc)
    try:
        term_range = await terms.get_term_range(host_id, now)
        active_rule_id = await terms.get_active_rule_id(host_id, now)
    except RepositoryError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Facilitator profile is temporarily unavailable.",
        ) from exc

    term_summary = await aggregator.summarize(
        None,
        None,
        SummaryOptions(host_id=host_id, use_facilitator_terms=True),
    )
    lifetime = await aggregator.summarize_lifetime(host_id)
    return FacilitatorDetail(
        host_id=host_id,
        term=term_summary.facilitators.get(host_id),
        lifetime=lifetime,
        term_range=term_range,
        active_rule_id=active_rule_id,
    )
