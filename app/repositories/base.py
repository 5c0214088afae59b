# app/repositories/base.py
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from app.schemas.appointment import AppointmentQuery, AppointmentRecord, ScanEvent
from app.schemas.badge import (
    BadgeRecord,
    BadgeRequestRecord,
    DocumentationSubmissionRecord,
)
from app.schemas.facilitator import FacilitatorProfileRecord


class RepositoryError(RuntimeError):
    """
    Raised when a backing store cannot answer a query (connection loss,
    timeout, malformed rows).
    """


class AppointmentRepository(Protocol):
    """Read access to appointments, plus the arrival write-back."""

    # False when the store has no queryable date column; callers then
    # apply date bounds in memory.
    supports_date_filter: bool
    # False when appointments carry no arrival-status field.
    tracks_arrival_status: bool

    async def list_appointments(self, query: AppointmentQuery) -> list[AppointmentRecord]:
        """Return published appointments matching `query`."""
        ...

    async def get_appointment(self, appointment_id: int) -> AppointmentRecord | None:
        ...

    async def record_arrival(
        self,
        appointment_id: int,
        status: str,
        scan_time: datetime | None,
    ) -> None:
        ...


class ScanRepository(Protocol):
    """Bulk access to arrival scans."""

    async def list_scans(
        self,
        user_ids: Sequence[int],
        start: datetime,
        end: datetime,
    ) -> list[ScanEvent]:
        """Return scans by any of `user_ids` with start <= created <= end."""
        ...


class ProfileRepository(Protocol):
    async def get_profile(self, user_id: int, bundle: str) -> FacilitatorProfileRecord | None:
        """Return the user's profile of `bundle`, or None. Never a collection."""
        ...


class BadgeRepository(Protocol):
    async def get_badge(self, badge_id: int) -> BadgeRecord | None:
        ...

    async def get_badges(self, badge_ids: Sequence[int]) -> dict[int, BadgeRecord]:
        ...

    async def list_submissions(
        self,
        member_id: int,
        form_id: str,
    ) -> list[DocumentationSubmissionRecord]:
        """Non-draft submissions, most recently changed first."""
        ...

    async def list_badge_requests(
        self,
        member_id: int,
        badge_id: int,
    ) -> list[BadgeRequestRecord]:
        """Published badge requests for the member and badge."""
        ...
