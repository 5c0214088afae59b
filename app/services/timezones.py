# app/services/timezones.py
from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def get_zone(name: str | None, fallback: str = "UTC") -> ZoneInfo:
    """
    Return the ZoneInfo for `name`, falling back to `fallback` (then UTC)
    when the name is empty or unknown.
    """
    for candidate in (name, fallback, "UTC"):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            continue
    return ZoneInfo("UTC")


def day_key(moment: datetime, zone: ZoneInfo) -> str:
    """
    Calendar day (YYYY-MM-DD) of `moment` as seen in `zone`.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(zone).strftime("%Y-%m-%d")
