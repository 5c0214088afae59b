# app/services/appointment_stats.py
from __future__ import annotations

import math
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.core.config import EngineConfig
from app.core.logging import get_logger
from app.repositories.base import (
    AppointmentRepository,
    ProfileRepository,
    RepositoryError,
    ScanRepository,
)
from app.schemas.appointment import CANCELED_STATUS, AppointmentQuery, AppointmentRecord
from app.schemas.facilitator import FacilitatorProfileRecord, TermRange
from app.schemas.stats import (
    FacilitatorStats,
    RateAverages,
    SummaryOptions,
    SummaryResult,
)
from app.services.capacity_resolver import count_attendees
from app.services.presence_index import PresenceIndex
from app.services.stats_cache import StatsCache, build_summary_cache_key
from app.services.term_lookup import FacilitatorTermResolver
from app.services.timezones import day_key, get_zone

logger = get_logger(component="appointment_stats")

NONE_KEY = "_none"
DAYS_PER_MONTH = 30.4375
IN_MEMORY_DATE_FILTER_WARNING = (
    "Timeline filters requested but appointment date field not found; "
    "applying filters in-memory."
)


def calculate_elapsed_windows(start: datetime, end: datetime) -> tuple[float, float]:
    """
    Convert [start, end] into elapsed (weeks, months), each at least 1.

    Elapsed days are rounded up and never below one, so a window that
    opened today still counts as a full day.
    """
    elapsed_seconds = max(0.0, (end - start).total_seconds())
    elapsed_days = max(1, math.ceil(elapsed_seconds / 86400))
    weeks = max(1.0, round(elapsed_days / 7, 2))
    months = max(1.0, round(elapsed_days / DAYS_PER_MONTH, 2))
    return weeks, months


def has_feedback(record: AppointmentRecord) -> bool:
    if record.result and record.result.strip():
        return True
    return bool(record.feedback and record.feedback.strip())


@dataclass
class _FacilitatorBucket:
    """Accumulator for one facilitator within one summarize() call."""

    uid: int
    appointments: int = 0
    badge_sessions: int = 0
    badges: int = 0
    attendees: int = 0
    feedback: int = 0
    cancelled: int = 0
    purpose_counts: Counter = field(default_factory=Counter)
    result_counts: Counter = field(default_factory=Counter)
    status_counts: Counter = field(default_factory=Counter)
    arrival_status_counts: Counter = field(default_factory=Counter)
    badges_breakdown: Counter = field(default_factory=Counter)
    day_keys: set[str] = field(default_factory=set)
    latest: datetime | None = None
    term: TermRange | None = None


class StatsAggregator:
    """
    Aggregates appointment statistics per facilitator and organization-wide.

    Collaborators
    -------------
    appointments:
        Record source; date bounds are pushed down when it supports them.
    profiles:
        Facilitator profiles (terms and time zones). Optional.
    scans:
        Access scans for arrival coverage. None means no scan integration,
        and arrival metrics are omitted.
    cache:
        Summary cache keyed by the (start, end, options) fingerprint. Optional.
    """

    def __init__(
        self,
        appointments: AppointmentRepository,
        config: EngineConfig,
        *,
        profiles: ProfileRepository | None = None,
        scans: ScanRepository | None = None,
        cache: StatsCache | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.appointments = appointments
        self.config = config
        self.cache = cache
        self.presence = PresenceIndex(scans)
        self.terms = FacilitatorTermResolver(profiles, config) if profiles is not None else None
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    async def summarize(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        options: SummaryOptions | None = None,
    ) -> SummaryResult:
        """
        Build aggregated statistics for appointments in [start, end].

        A cached result for the same arguments is returned as-is. If the
        appointment query fails, the all-zero summary is returned (and not
        cached).
        """
        options = options or SummaryOptions()
        cache_key = build_summary_cache_key(start, end, options)

        if self.cache is not None:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                logger.debug("stats_cache_hit", key=cache_key)
                return cached

        summary = await self._compute(start, end, options)
        if summary is None:
            return SummaryResult()

        if self.cache is not None:
            await self.cache.set(cache_key, summary, self.config.cache_ttl_seconds)
        return summary

    async def summarize_lifetime(self, host_id: int) -> FacilitatorStats | None:
        """
        All-time statistics for one facilitator, ignoring terms.
        """
        summary = await self.summarize(None, None, SummaryOptions(host_id=host_id))
        return summary.facilitators.get(host_id)

    async def _compute(
        self,
        start: datetime | None,
        end: datetime | None,
        options: SummaryOptions,
    ) -> SummaryResult | None:
        now = self._clock()
        warnings: list[str] = []

        bounded = start is not None or end is not None
        pushed_down = bounded and self.appointments.supports_date_filter
        if bounded and not pushed_down:
            logger.warning("stats_date_filter_in_memory")
            warnings.append(IN_MEMORY_DATE_FILTER_WARNING)

        query = AppointmentQuery(
            purpose=options.purpose,
            host_id=options.host_id,
            exclude_canceled=not options.include_cancelled,
            start=start if pushed_down else None,
            end=end if pushed_down else None,
        )

        try:
            records = await self.appointments.list_appointments(query)
        except RepositoryError as exc:
            logger.error("stats_query_failed", error=str(exc))
            return None

        track_arrival_status = self.appointments.tracks_arrival_status
        profile_cache: dict[int, FacilitatorProfileRecord | None] = {}
        term_cache: dict[int, TermRange | None] = {}
        buckets: dict[int, _FacilitatorBucket] = {}

        purpose_totals: Counter = Counter()
        result_totals: Counter = Counter()
        status_totals: Counter = Counter()
        arrival_status_totals: Counter = Counter()
        badge_ids: set[int] = set()
        totals = Counter()

        for record in records:
            when = record.scheduled_start

            if bounded and not pushed_down:
                # Same semantics as the pushed-down filter: undated records
                # never match a bounded query.
                if when is None:
                    continue
                if start is not None and when < start:
                    continue
                if end is not None and when > end:
                    continue

            purpose = record.purpose or NONE_KEY
            if options.purpose and purpose != options.purpose:
                continue

            host_id = record.host_id or 0
            if options.host_id is not None and host_id != options.host_id:
                continue

            bucket = buckets.get(host_id)
            if bucket is None:
                bucket = buckets[host_id] = _FacilitatorBucket(uid=host_id)

            if options.use_facilitator_terms:
                if host_id not in term_cache:
                    profile = await self._profile_for(host_id, profile_cache)
                    term_cache[host_id] = (
                        self.terms.term_from_profile(profile, now) if self.terms else None
                    )
                term = term_cache[host_id]
                if term is not None:
                    bucket.term = term
                    if when is not None and (when < term.start or when > term.effective_end):
                        continue

            totals["appointments"] += 1
            bucket.appointments += 1
            purpose_totals[purpose] += 1
            bucket.purpose_counts[purpose] += 1

            result = record.result or NONE_KEY
            result_totals[result] += 1
            bucket.result_counts[result] += 1

            status = record.status or NONE_KEY
            status_totals[status] += 1
            bucket.status_counts[status] += 1
            if status == CANCELED_STATUS:
                totals["cancelled"] += 1
                bucket.cancelled += 1

            if track_arrival_status and record.arrival_status:
                arrival_status_totals[record.arrival_status] += 1
                bucket.arrival_status_counts[record.arrival_status] += 1

            attendees = count_attendees(record)
            totals["attendees"] += attendees
            bucket.attendees += attendees

            if has_feedback(record):
                totals["feedback"] += 1
                bucket.feedback += 1

            if record.badge_ids:
                totals["badge_appointments"] += 1
                bucket.badge_sessions += 1
            totals["badges"] += len(record.badge_ids)
            bucket.badges += len(record.badge_ids)
            for bid in record.badge_ids:
                badge_ids.add(bid)
                bucket.badges_breakdown[bid] += 1

            if when is not None:
                zone = await self._zone_for(host_id, profile_cache)
                bucket.day_keys.add(day_key(when, zone))
                if bucket.latest is None or when > bucket.latest:
                    bucket.latest = when

        zones = {uid: await self._zone_for(uid, profile_cache) for uid in buckets}
        presence = await self.presence.build(
            {uid: bucket.day_keys for uid, bucket in buckets.items()},
            zones,
        )
        arrival_available = presence is not None

        rate_values: dict[str, list[float]] = {
            "appointments_per_week": [],
            "appointments_per_month": [],
            "feedback_rate": [],
            "arrival_rate": [],
        }
        facilitators: dict[int, FacilitatorStats] = {}
        total_days = 0
        total_arrival_days = 0

        for uid, bucket in buckets.items():
            day_count = len(bucket.day_keys)
            total_days += day_count

            feedback_rate = 0.0
            if bucket.appointments > 0:
                feedback_rate = round(bucket.feedback / bucket.appointments * 100, 1)

            arrival_days = None
            arrival_rate = None
            if presence is not None and day_count > 0:
                arrival_days = len(presence.get(uid, ()))
                arrival_rate = round(arrival_days / day_count * 100, 1)
                total_arrival_days += arrival_days

            window = None
            if options.use_facilitator_terms and bucket.term is not None:
                window = (bucket.term.start, min(bucket.term.end, now))
            elif start is not None and end is not None:
                window = (start, end)

            elapsed_weeks = elapsed_months = None
            per_week = per_month = None
            if window is not None and window[1] >= window[0]:
                elapsed_weeks, elapsed_months = calculate_elapsed_windows(*window)
                per_week = round(bucket.appointments / elapsed_weeks, 2)
                per_month = round(bucket.appointments / elapsed_months, 2)

            if per_week is not None:
                rate_values["appointments_per_week"].append(per_week)
            if per_month is not None:
                rate_values["appointments_per_month"].append(per_month)
            rate_values["feedback_rate"].append(feedback_rate)
            if arrival_rate is not None:
                rate_values["arrival_rate"].append(arrival_rate)

            facilitators[uid] = FacilitatorStats(
                uid=uid,
                appointments=bucket.appointments,
                badge_sessions=bucket.badge_sessions,
                badges=bucket.badges,
                attendees=bucket.attendees,
                feedback=bucket.feedback,
                feedback_rate=feedback_rate,
                cancelled=bucket.cancelled,
                purpose_counts=dict(bucket.purpose_counts),
                result_counts=dict(bucket.result_counts),
                status_counts=dict(bucket.status_counts),
                arrival_status_counts=dict(bucket.arrival_status_counts),
                badges_breakdown=dict(bucket.badges_breakdown),
                latest=bucket.latest,
                appointment_day_count=day_count,
                arrival_days=arrival_days,
                arrival_rate=arrival_rate,
                term_start=bucket.term.start if bucket.term else None,
                term_end=bucket.term.end if bucket.term else None,
                term_elapsed_weeks=elapsed_weeks,
                term_elapsed_months=elapsed_months,
                appointments_per_week=per_week,
                appointments_per_month=per_month,
            )

        total_appointments = totals["appointments"]
        feedback_rate = 0.0
        if total_appointments > 0:
            feedback_rate = round(totals["feedback"] / total_appointments * 100, 1)

        arrival_rate = None
        if arrival_available and total_days > 0:
            arrival_rate = round(total_arrival_days / total_days * 100, 1)

        averages = RateAverages(
            **{
                key: round(sum(values) / len(values), 2)
                for key, values in rate_values.items()
                if values
            }
        )

        return SummaryResult(
            total_appointments=total_appointments,
            total_badge_appointments=totals["badge_appointments"],
            total_badges=totals["badges"],
            total_attendees=totals["attendees"],
            total_feedback=totals["feedback"],
            feedback_rate=feedback_rate,
            cancelled_total=totals["cancelled"],
            total_appointment_days=total_days,
            total_arrival_days=total_arrival_days,
            arrival_rate=arrival_rate,
            arrival_available=arrival_available,
            arrival_status_totals=dict(arrival_status_totals),
            arrival_status_available=track_arrival_status,
            facilitators=facilitators,
            purpose_totals=dict(purpose_totals),
            result_totals=dict(result_totals),
            status_totals=dict(status_totals),
            badge_ids=sorted(badge_ids),
            facilitator_rate_averages=averages,
            warnings=warnings,
        )

    async def _profile_for(
        self,
        uid: int,
        cache: dict[int, FacilitatorProfileRecord | None],
    ) -> FacilitatorProfileRecord | None:
        if uid in cache:
            return cache[uid]

        profile = None
        if self.terms is not None:
            try:
                profile = await self.terms.get_profile(uid)
            except RepositoryError as exc:
                logger.warning("facilitator_profile_lookup_failed", uid=uid, error=str(exc))
        cache[uid] = profile
        return profile

    async def _zone_for(
        self,
        uid: int,
        cache: dict[int, FacilitatorProfileRecord | None],
    ) -> ZoneInfo:
        profile = await self._profile_for(uid, cache)
        return get_zone(profile.timezone if profile else None, self.config.site_timezone)
