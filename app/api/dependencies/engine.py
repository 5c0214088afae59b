# app/api/dependencies/engine.py
from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import EngineConfig, get_settings
from app.db.session import get_db
from app.repositories.base import (
    AppointmentRepository,
    BadgeRepository,
    ProfileRepository,
    ScanRepository,
)
from app.repositories.sql import (
    SqlAppointmentRepository,
    SqlBadgeRepository,
    SqlProfileRepository,
    SqlScanRepository,
)
from app.services.appointment_stats import StatsAggregator
from app.services.stats_cache import (
    InMemoryStatsCache,
    RedisStatsCache,
    StatsCache,
    get_redis_client,
)


def get_engine_config() -> EngineConfig:
    return EngineConfig.from_settings(get_settings())


# Simple singleton-style accessor wired to app settings
_stats_cache_instance: Optional[StatsCache] = None


def get_stats_cache() -> StatsCache:
    """
    Process-wide summary cache.

    Uses Redis when REDIS_URL is configured so that all workers share
    cached summaries; otherwise an in-process cache.
    """
    global _stats_cache_instance
    if _stats_cache_instance is None:
        settings = get_settings()
        if settings.REDIS_URL:
            _stats_cache_instance = RedisStatsCache(get_redis_client(settings.REDIS_URL))
        else:
            _stats_cache_instance = InMemoryStatsCache()
    return _stats_cache_instance


def get_appointment_repository(db: AsyncSession = Depends(get_db)) -> AppointmentRepository:
    return SqlAppointmentRepository(db)


def get_scan_repository(db: AsyncSession = Depends(get_db)) -> Optional[ScanRepository]:
    """
    Access-scan source, or None when the scan integration is disabled.
    """
    if not get_settings().ACCESS_SCANS_ENABLED:
        return None
    return SqlScanRepository(db)


def get_profile_repository(db: AsyncSession = Depends(get_db)) -> ProfileRepository:
    return SqlProfileRepository(db)


def get_badge_repository(db: AsyncSession = Depends(get_db)) -> BadgeRepository:
    return SqlBadgeRepository(db)


def get_stats_aggregator(
    appointments: AppointmentRepository = Depends(get_appointment_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
    scans: Optional[ScanRepository] = Depends(get_scan_repository),
    config: EngineConfig = Depends(get_engine_config),
) -> StatsAggregator:
    return StatsAggregator(
        appointments,
        config,
        profiles=profiles,
        scans=scans,
        cache=get_stats_cache(),
    )
