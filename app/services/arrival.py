# app/services/arrival.py
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from app.core.config import EngineConfig
from app.repositories.base import ScanRepository
from app.schemas.appointment import AppointmentRecord, ScanEvent
from app.schemas.arrival import ArrivalOutcome, ArrivalStatus, ArrivalWindow


def build_arrival_window(
    scheduled_start: datetime | None,
    scheduled_end: datetime | None,
    pre_window_minutes: int,
    timezone_name: str | None = None,
) -> ArrivalWindow | None:
    """
    Build the scan-eligible window [start - pre_window, end].

    Returns None when either bound is missing or not after the epoch;
    callers skip classification for such appointments.
    """
    if scheduled_start is None or scheduled_end is None:
        return None
    if scheduled_start.timestamp() <= 0 or scheduled_end.timestamp() <= 0:
        return None

    return ArrivalWindow(
        start=scheduled_start - timedelta(minutes=pre_window_minutes),
        end=scheduled_end,
        scheduled_start=scheduled_start,
        timezone=timezone_name or "UTC",
    )


def classify_arrival(
    window_start: datetime,
    window_end: datetime,
    scan: datetime | None,
    scheduled_start: datetime,
    grace_minutes: int,
) -> ArrivalStatus:
    """
    Map an arrival scan (or its absence) to an ArrivalStatus.

    Rules
    -----
    1) No scan, or scan outside [window_start, window_end] => MISSED
    2) scan <= scheduled_start                            => ON_TIME
    3) scan <= scheduled_start + grace                    => LATE_GRACE
    4) Otherwise                                          => LATE
    """
    if scan is None:
        return ArrivalStatus.MISSED
    if scan < window_start or scan > window_end:
        return ArrivalStatus.MISSED
    if scan <= scheduled_start:
        return ArrivalStatus.ON_TIME
    if scan <= scheduled_start + timedelta(minutes=grace_minutes):
        return ArrivalStatus.LATE_GRACE
    return ArrivalStatus.LATE


def find_arrival_scan(scans: Iterable[ScanEvent], window: ArrivalWindow) -> datetime | None:
    """
    Earliest scan inside the window; it is the authoritative arrival.
    """
    inside = [s.created for s in scans if window.start <= s.created <= window.end]
    return min(inside) if inside else None


class ArrivalResolver:
    """
    Classifies a single appointment's facilitator arrival from access scans.
    """

    def __init__(self, scans: ScanRepository, config: EngineConfig) -> None:
        self.scans = scans
        self.config = config

    def window_for(self, appointment: AppointmentRecord) -> ArrivalWindow | None:
        return build_arrival_window(
            appointment.scheduled_start,
            appointment.scheduled_end,
            self.config.pre_window_minutes,
            appointment.timezone or self.config.site_timezone,
        )

    async def resolve(self, appointment: AppointmentRecord) -> ArrivalOutcome | None:
        """
        Return the arrival outcome, or None when the appointment has no
        usable window.

        Raises RepositoryError when the scan lookup fails.
        """
        window = self.window_for(appointment)
        if window is None:
            return None

        scan_time: datetime | None = None
        if appointment.host_id:
            scans = await self.scans.list_scans([appointment.host_id], window.start, window.end)
            scan_time = find_arrival_scan(scans, window)

        status = classify_arrival(
            window.start,
            window.end,
            scan_time,
            window.scheduled_start,
            self.config.grace_minutes,
        )
        return ArrivalOutcome(
            appointment_id=appointment.id,
            status=status,
            scan_time=scan_time,
            window=window,
        )
