# app/services/term_lookup.py
from __future__ import annotations

from datetime import datetime

from app.core.config import EngineConfig
from app.repositories.base import ProfileRepository
from app.schemas.facilitator import FacilitatorProfileRecord, TermRange
from app.services.interval_selector import collect_intervals, select_interval
from app.services.timezones import get_zone


class FacilitatorTermResolver:
    """
    Resolves a facilitator's profile, term and active availability rule.

    Both lookups go through the shared interval selector, so the "current,
    then most recent past, then soonest future" rule is applied identically
    wherever a facilitator's availability is shown.
    """

    def __init__(self, profiles: ProfileRepository, config: EngineConfig) -> None:
        self.profiles = profiles
        self.config = config

    async def get_profile(self, uid: int) -> FacilitatorProfileRecord | None:
        if uid <= 0:
            return None
        return await self.profiles.get_profile(uid, self.config.profile_bundle)

    def term_from_profile(
        self,
        profile: FacilitatorProfileRecord | None,
        now: datetime,
    ) -> TermRange | None:
        if profile is None or not profile.hours:
            return None

        default_tz = profile.timezone or self.config.site_timezone
        chosen = select_interval(collect_intervals(profile.hours, default_tz), now)
        if chosen is None:
            return None

        zone = get_zone(chosen.timezone, self.config.site_timezone)
        return TermRange(
            start=chosen.start.astimezone(zone),
            end=chosen.end.astimezone(zone),
            effective_end=min(chosen.end, now).astimezone(zone),
            timezone=zone.key,
        )

    async def get_term_range(self, uid: int, now: datetime) -> TermRange | None:
        """
        Return the facilitator's term relative to `now`, or None when the
        facilitator has no profile or no usable availability entries.
        """
        return self.term_from_profile(await self.get_profile(uid), now)

    async def get_active_rule_id(self, uid: int, now: datetime) -> int | None:
        """
        Return the recurrence rule behind the facilitator's selected
        availability, for linking to its instance list.
        """
        profile = await self.get_profile(uid)
        if profile is None:
            return None

        default_tz = profile.timezone or self.config.site_timezone
        recurring = [
            interval
            for interval in collect_intervals(profile.hours, default_tz)
            if interval.rule_id is not None
        ]
        chosen = select_interval(recurring, now)
        return chosen.rule_id if chosen else None
