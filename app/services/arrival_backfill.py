# app/services/arrival_backfill.py
from __future__ import annotations

from datetime import date as date_type
from datetime import datetime, time, timedelta, timezone

from app.core.config import EngineConfig
from app.core.logging import get_logger
from app.repositories.base import AppointmentRepository, RepositoryError, ScanRepository
from app.schemas.appointment import AppointmentQuery
from app.schemas.arrival import BackfillResult
from app.services.arrival import ArrivalResolver
from app.services.timezones import get_zone

logger = get_logger(component="arrival_backfill")


async def backfill_arrivals(
    appointments: AppointmentRepository,
    scans: ScanRepository | None,
    config: EngineConfig,
    start_date: date_type,
    end_date: date_type,
    *,
    force: bool = False,
    now: datetime | None = None,
) -> BackfillResult:
    """
    Classify and record facilitator arrival for past appointments.

    Behavior
    --------
    - Covers non-canceled appointments scheduled on [start_date, end_date]
      (inclusive, site time zone).
    - Skips appointments that already carry an arrival status unless
      `force` is set, appointments without an arrival window, and those
      whose window has not closed yet.
    - Writes the status and, when a scan was found, the scan time.
    - If no scan source is configured, nothing is evaluated.
    """
    if end_date < start_date:
        raise ValueError("end_date must be greater than or equal to start_date")

    result = BackfillResult(start_date=start_date, end_date=end_date)

    if scans is None:
        logger.warning("arrival_backfill_unavailable", reason="no scan source configured")
        result.available = False
        return result

    if not appointments.tracks_arrival_status:
        logger.warning("arrival_backfill_unavailable", reason="appointments lack arrival status")
        result.available = False
        return result

    now = now or datetime.now(tz=timezone.utc)
    zone = get_zone(config.site_timezone)
    range_start = datetime.combine(start_date, time.min, tzinfo=zone)
    range_end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=zone) - timedelta(
        seconds=1
    )

    query = AppointmentQuery(exclude_canceled=True, start=range_start, end=range_end)
    records = await appointments.list_appointments(query)

    resolver = ArrivalResolver(scans, config)

    for record in records:
        when = record.scheduled_start
        if when is None or when < range_start or when > range_end:
            continue

        if not force and record.arrival_status:
            result.skipped += 1
            continue

        window = resolver.window_for(record)
        if window is None or window.end > now:
            result.skipped += 1
            continue

        try:
            outcome = await resolver.resolve(record)
        except RepositoryError as exc:
            logger.warning(
                "arrival_scan_lookup_failed",
                appointment_id=record.id,
                error=str(exc),
            )
            result.skipped += 1
            continue

        if outcome is None:
            result.skipped += 1
            continue

        await appointments.record_arrival(record.id, outcome.status.value, outcome.scan_time)
        result.updated += 1

    logger.info(
        "arrival_backfill_complete",
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        updated=result.updated,
        skipped=result.skipped,
    )
    return result
