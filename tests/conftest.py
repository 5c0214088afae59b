# tests/conftest.py
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies.engine import (
    get_appointment_repository,
    get_badge_repository,
    get_engine_config,
    get_profile_repository,
    get_scan_repository,
    get_stats_aggregator,
)
from app.core.config import EngineConfig
from app.main import create_app
from app.repositories.memory import (
    InMemoryAppointmentRepository,
    InMemoryBadgeRepository,
    InMemoryProfileRepository,
    InMemoryScanRepository,
)
from app.services.appointment_stats import StatsAggregator
from app.services.stats_cache import InMemoryStatsCache

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@dataclass
class Repositories:
    """
    In-memory stores wired into the app in place of the SQL repositories.
    """

    appointments: InMemoryAppointmentRepository = field(
        default_factory=InMemoryAppointmentRepository
    )
    scans: InMemoryScanRepository | None = field(default_factory=InMemoryScanRepository)
    profiles: InMemoryProfileRepository = field(default_factory=InMemoryProfileRepository)
    badges: InMemoryBadgeRepository = field(default_factory=InMemoryBadgeRepository)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def repos() -> Repositories:
    return Repositories()


@pytest.fixture
def client(repos: Repositories, config: EngineConfig) -> TestClient:
    """
    TestClient over a fresh app whose repositories are in-memory.

    Tests seed `repos` before issuing requests. The app lifespan is not
    entered, so no database is created.
    """
    app = create_app()
    cache = InMemoryStatsCache()

    def _aggregator() -> StatsAggregator:
        return StatsAggregator(
            repos.appointments,
            config,
            profiles=repos.profiles,
            scans=repos.scans,
            cache=cache,
            clock=lambda: NOW,
        )

    app.dependency_overrides[get_engine_config] = lambda: config
    app.dependency_overrides[get_appointment_repository] = lambda: repos.appointments
    app.dependency_overrides[get_scan_repository] = lambda: repos.scans
    app.dependency_overrides[get_profile_repository] = lambda: repos.profiles
    app.dependency_overrides[get_badge_repository] = lambda: repos.badges
    app.dependency_overrides[get_stats_aggregator] = _aggregator

    return TestClient(app)
