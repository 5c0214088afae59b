# app/services/presence_index.py
from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, time
from zoneinfo import ZoneInfo

from app.core.logging import get_logger
from app.repositories.base import RepositoryError, ScanRepository
from app.services.timezones import day_key

logger = get_logger(component="presence_index")


class PresenceIndex:
    """
    Day-level facilitator presence built from a single bulk scan query.

    Instead of one scan lookup per appointment, the index computes the
    overall range covered by every requested day, loads all facilitators'
    scans in that range at once, and marks a day as present only if that
    facilitator actually had appointments on it.
    """

    def __init__(self, scans: ScanRepository | None) -> None:
        self.scans = scans

    async def build(
        self,
        day_buckets: Mapping[int, set[str]],
        zones: Mapping[int, ZoneInfo],
    ) -> dict[int, set[str]] | None:
        """
        Return {facilitator_id: days with at least one scan}.

        Returns None when there is no scan source at all, so callers can
        omit arrival metrics instead of reporting zero coverage. A failing
        scan query yields an empty map.
        """
        if self.scans is None:
            return None

        presence: dict[int, set[str]] = {}
        requested = {
            uid: days
            for uid, days in day_buckets.items()
            if uid > 0 and days
        }
        if not requested:
            return presence

        span = self._covering_range(requested, zones)
        if span is None:
            return presence

        try:
            events = await self.scans.list_scans(sorted(requested), span[0], span[1])
        except RepositoryError as exc:
            logger.warning("presence_query_failed", error=str(exc))
            return presence

        for event in events:
            days = requested.get(event.user_id)
            if not days:
                continue
            key = day_key(event.created, zones.get(event.user_id, ZoneInfo("UTC")))
            if key in days:
                presence.setdefault(event.user_id, set()).add(key)

        return presence

    @staticmethod
    def _covering_range(
        requested: Mapping[int, set[str]],
        zones: Mapping[int, ZoneInfo],
    ) -> tuple[datetime, datetime] | None:
        earliest: datetime | None = None
        latest: datetime | None = None

        for uid, days in requested.items():
            zone = zones.get(uid, ZoneInfo("UTC"))
            for day in days:
                try:
                    parsed = datetime.strptime(day, "%Y-%m-%d").date()
                except ValueError:
                    continue
                start = datetime.combine(parsed, time(0, 0, 0), tzinfo=zone)
                end = datetime.combine(parsed, time(23, 59, 59), tzinfo=zone)
                earliest = start if earliest is None else min(earliest, start)
                latest = end if latest is None else max(latest, end)

        if earliest is None or latest is None:
            return None
        return earliest, latest
