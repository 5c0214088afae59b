# app/services/interval_selector.py
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from app.schemas.facilitator import AvailabilityEntry, IntervalState, TimeInterval


def classify_interval(interval: TimeInterval, now: datetime) -> IntervalState:
    if interval.start <= now <= interval.end:
        return IntervalState.CURRENT
    if interval.end < now:
        return IntervalState.PAST
    return IntervalState.FUTURE


def select_interval(intervals: Sequence[TimeInterval], now: datetime) -> TimeInterval | None:
    """
    Pick the single most relevant interval relative to `now`.

    Priority
    --------
    1) Current intervals: earliest start.
    2) Past intervals: latest end (most recently concluded).
    3) Future intervals: earliest start (soonest upcoming).
    4) Nothing: None.

    Ties keep input order, so the result does not depend on how equal
    candidates happen to be arranged beyond that.
    """
    current: list[TimeInterval] = []
    past: list[TimeInterval] = []
    future: list[TimeInterval] = []

    for interval in intervals:
        state = classify_interval(interval, now)
        if state is IntervalState.CURRENT:
            current.append(interval)
        elif state is IntervalState.PAST:
            past.append(interval)
        else:
            future.append(interval)

    if current:
        return min(current, key=lambda i: i.start)
    if past:
        return max(past, key=lambda i: i.end)
    if future:
        return min(future, key=lambda i: i.start)
    return None


def collect_intervals(
    entries: Iterable[AvailabilityEntry],
    default_timezone: str = "UTC",
) -> list[TimeInterval]:
    """
    Turn profile availability entries into selectable intervals.

    A recurrence rule attached to an entry replaces the entry's own bounds
    (the rule spans all of its instances). Entries left without a start or
    an end, or with end before start, are dropped.
    """
    intervals: list[TimeInterval] = []
    for entry in entries:
        start, end = entry.start, entry.end
        tz_name = entry.timezone or default_timezone
        rule_id = None

        if entry.rule is not None:
            start, end = entry.rule.start, entry.rule.end
            tz_name = entry.rule.timezone or tz_name
            rule_id = entry.rule.id

        if start is None or end is None or end < start:
            continue

        intervals.append(
            TimeInterval(start=start, end=end, timezone=tz_name, rule_id=rule_id)
        )
    return intervals
