# tests/test_arrival.py
from datetime import datetime, timedelta, timezone

import pytest

from app.core.config import EngineConfig
from app.repositories.base import RepositoryError
from app.repositories.memory import InMemoryScanRepository
from app.schemas.appointment import AppointmentRecord, ScanEvent
from app.schemas.arrival import ArrivalStatus
from app.services.arrival import (
    ArrivalResolver,
    build_arrival_window,
    classify_arrival,
    find_arrival_scan,
)

START = datetime(2025, 6, 10, 10, 0, tzinfo=timezone.utc)
END = datetime(2025, 6, 10, 11, 0, tzinfo=timezone.utc)
WINDOW_START = START - timedelta(minutes=30)
GRACE = 5


class FailingScanRepository:
    async def list_scans(self, user_ids, start, end):
        raise RepositoryError("scan store offline")


def _appointment(**kwargs) -> AppointmentRecord:
    data = {"id": 101, "host_id": 7, "scheduled_start": START, "scheduled_end": END}
    data.update(kwargs)
    return AppointmentRecord(**data)


def test_build_arrival_window_extends_before_start():
    window = build_arrival_window(START, END, 30, "America/Denver")

    assert window is not None
    assert window.start == WINDOW_START
    assert window.end == END
    assert window.scheduled_start == START
    assert window.timezone == "America/Denver"


def test_build_arrival_window_rejects_missing_or_epoch_bounds():
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)

    assert build_arrival_window(None, END, 30) is None
    assert build_arrival_window(START, None, 30) is None
    assert build_arrival_window(epoch, END, 30) is None


@pytest.mark.parametrize(
    "scan, expected",
    [
        (None, ArrivalStatus.MISSED),
        (WINDOW_START - timedelta(seconds=1), ArrivalStatus.MISSED),
        (WINDOW_START, ArrivalStatus.ON_TIME),
        (START, ArrivalStatus.ON_TIME),
        (START + timedelta(seconds=1), ArrivalStatus.LATE_GRACE),
        (START + timedelta(minutes=GRACE), ArrivalStatus.LATE_GRACE),
        (START + timedelta(minutes=GRACE, seconds=1), ArrivalStatus.LATE),
        (END, ArrivalStatus.LATE),
        (END + timedelta(seconds=1), ArrivalStatus.MISSED),
    ],
)
def test_classify_arrival_boundaries(scan, expected):
    assert classify_arrival(WINDOW_START, END, scan, START, GRACE) == expected


def test_find_arrival_scan_uses_earliest_scan_in_window():
    window = build_arrival_window(START, END, 30)
    scans = [
        ScanEvent(user_id=7, created=START + timedelta(minutes=3)),
        ScanEvent(user_id=7, created=WINDOW_START - timedelta(minutes=1)),
        ScanEvent(user_id=7, created=START - timedelta(minutes=10)),
    ]

    assert find_arrival_scan(scans, window) == START - timedelta(minutes=10)
    assert find_arrival_scan([], window) is None


@pytest.mark.asyncio
async def test_resolver_classifies_late_grace_arrival():
    scans = InMemoryScanRepository(
        [
            ScanEvent(user_id=7, created=START + timedelta(minutes=2)),
            ScanEvent(user_id=8, created=START - timedelta(minutes=20)),
        ]
    )
    resolver = ArrivalResolver(scans, EngineConfig())

    outcome = await resolver.resolve(_appointment())

    assert outcome is not None
    assert outcome.appointment_id == 101
    assert outcome.status is ArrivalStatus.LATE_GRACE
    assert outcome.scan_time == START + timedelta(minutes=2)


@pytest.mark.asyncio
async def test_resolver_reports_missed_without_scans():
    resolver = ArrivalResolver(InMemoryScanRepository(), EngineConfig())

    outcome = await resolver.resolve(_appointment())

    assert outcome.status is ArrivalStatus.MISSED
    assert outcome.scan_time is None


@pytest.mark.asyncio
async def test_resolver_returns_none_without_window():
    resolver = ArrivalResolver(InMemoryScanRepository(), EngineConfig())

    assert await resolver.resolve(_appointment(scheduled_end=None)) is None


@pytest.mark.asyncio
async def test_resolver_propagates_scan_failures():
    resolver = ArrivalResolver(FailingScanRepository(), EngineConfig())

    with pytest.raises(RepositoryError):
        await resolver.resolve(_appointment())
