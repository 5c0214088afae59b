# tests/test_presence_index.py
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from app.repositories.base import RepositoryError
from app.repositories.memory import InMemoryScanRepository
from app.schemas.appointment import ScanEvent
from app.services.presence_index import PresenceIndex

UTC = ZoneInfo("UTC")


class FailingScanRepository:
    async def list_scans(self, user_ids, start, end):
        raise RepositoryError("scan store offline")


def _scan(user_id: int, iso: str) -> ScanEvent:
    return ScanEvent(
        user_id=user_id,
        created=datetime.fromisoformat(iso).replace(tzinfo=timezone.utc),
    )


@pytest.mark.asyncio
async def test_build_without_scan_source_returns_none():
    index = PresenceIndex(None)
    assert await index.build({7: {"2025-06-10"}}, {7: UTC}) is None


@pytest.mark.asyncio
async def test_build_uses_one_query_and_marks_only_requested_days():
    scans = InMemoryScanRepository(
        [
            _scan(7, "2025-06-10T09:00:00"),
            _scan(7, "2025-06-11T09:00:00"),  # day without appointments
            _scan(8, "2025-06-12T18:30:00"),
            _scan(9, "2025-06-10T09:00:00"),  # not requested
        ]
    )
    index = PresenceIndex(scans)

    presence = await index.build(
        {7: {"2025-06-10", "2025-06-12"}, 8: {"2025-06-12"}},
        {7: UTC, 8: UTC},
    )

    assert scans.query_count == 1
    assert presence == {7: {"2025-06-10"}, 8: {"2025-06-12"}}


@pytest.mark.asyncio
async def test_build_skips_invalid_users_and_empty_day_sets():
    scans = InMemoryScanRepository([_scan(7, "2025-06-10T09:00:00")])
    index = PresenceIndex(scans)

    presence = await index.build({0: {"2025-06-10"}, 7: set()}, {})

    assert presence == {}
    assert scans.query_count == 0


@pytest.mark.asyncio
async def test_build_evaluates_days_in_facilitator_zone():
    """
    02:00 UTC on June 11 is still June 10 in New York.
    """
    scans = InMemoryScanRepository([_scan(7, "2025-06-11T02:00:00")])
    index = PresenceIndex(scans)

    presence = await index.build(
        {7: {"2025-06-10"}},
        {7: ZoneInfo("America/New_York")},
    )

    assert presence == {7: {"2025-06-10"}}


@pytest.mark.asyncio
async def test_build_query_failure_yields_empty_map():
    index = PresenceIndex(FailingScanRepository())

    presence = await index.build({7: {"2025-06-10"}}, {7: UTC})

    assert presence == {}