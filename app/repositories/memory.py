# app/repositories/memory.py
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from app.schemas.appointment import (
    CANCELED_STATUS,
    AppointmentQuery,
    AppointmentRecord,
    ScanEvent,
)
from app.schemas.badge import (
    BadgeRecord,
    BadgeRequestRecord,
    DocumentationSubmissionRecord,
)
from app.schemas.facilitator import FacilitatorProfileRecord


class InMemoryAppointmentRepository:
    """
    Appointment store backed by a dict keyed by id.

    Set `supports_date_filter=False` to emulate a store without a queryable
    date column: date bounds in the query are then ignored.
    """

    def __init__(
        self,
        appointments: Iterable[AppointmentRecord] = (),
        *,
        supports_date_filter: bool = True,
        tracks_arrival_status: bool = True,
        unpublished_ids: Iterable[int] = (),
    ) -> None:
        self._appointments: dict[int, AppointmentRecord] = {a.id: a for a in appointments}
        self._unpublished = set(unpublished_ids)
        self.supports_date_filter = supports_date_filter
        self.tracks_arrival_status = tracks_arrival_status

    def add(self, appointment: AppointmentRecord) -> None:
        self._appointments[appointment.id] = appointment

    async def list_appointments(self, query: AppointmentQuery) -> list[AppointmentRecord]:
        matches: list[AppointmentRecord] = []
        for appointment in self._appointments.values():
            if appointment.id in self._unpublished:
                continue
            if query.purpose is not None and appointment.purpose != query.purpose:
                continue
            if query.exclude_canceled and appointment.status == CANCELED_STATUS:
                continue
            if query.host_id is not None and appointment.host_id != query.host_id:
                continue
            if self.supports_date_filter and (query.start or query.end):
                when = appointment.scheduled_start
                if when is None:
                    continue
                if query.start and when < query.start:
                    continue
                if query.end and when > query.end:
                    continue
            matches.append(appointment)
        return matches

    async def get_appointment(self, appointment_id: int) -> AppointmentRecord | None:
        return self._appointments.get(appointment_id)

    async def record_arrival(
        self,
        appointment_id: int,
        status: str,
        scan_time: datetime | None,
    ) -> None:
        current = self._appointments[appointment_id]
        update: dict[str, object] = {"arrival_status": status}
        if scan_time is not None:
            update["arrival_time"] = scan_time
        self._appointments[appointment_id] = current.model_copy(update=update)


class InMemoryScanRepository:
    def __init__(self, scans: Iterable[ScanEvent] = ()) -> None:
        self._scans = list(scans)
        self.query_count = 0

    def add(self, scan: ScanEvent) -> None:
        self._scans.append(scan)

    async def list_scans(
        self,
        user_ids: Sequence[int],
        start: datetime,
        end: datetime,
    ) -> list[ScanEvent]:
        self.query_count += 1
        wanted = set(user_ids)
        return [
            scan
            for scan in self._scans
            if scan.user_id in wanted and start <= scan.created <= end
        ]


class InMemoryProfileRepository:
    def __init__(self, profiles: Iterable[FacilitatorProfileRecord] = ()) -> None:
        self._profiles = list(profiles)

    async def get_profile(self, user_id: int, bundle: str) -> FacilitatorProfileRecord | None:
        for profile in self._profiles:
            if profile.user_id == user_id and profile.bundle == bundle:
                return profile
        return None


class InMemoryBadgeRepository:
    def __init__(
        self,
        badges: Iterable[BadgeRecord] = (),
        submissions: Iterable[DocumentationSubmissionRecord] = (),
        requests: Iterable[BadgeRequestRecord] = (),
    ) -> None:
        self._badges = {b.id: b for b in badges}
        self._submissions = list(submissions)
        self._requests = list(requests)

    async def get_badge(self, badge_id: int) -> BadgeRecord | None:
        return self._badges.get(badge_id)

    async def get_badges(self, badge_ids: Sequence[int]) -> dict[int, BadgeRecord]:
        return {bid: self._badges[bid] for bid in badge_ids if bid in self._badges}

    async def list_submissions(
        self,
        member_id: int,
        form_id: str,
    ) -> list[DocumentationSubmissionRecord]:
        found = [
            s
            for s in self._submissions
            if s.member_id == member_id and s.form_id == form_id and not s.in_draft
        ]
        return sorted(found, key=lambda s: s.changed, reverse=True)

    async def list_badge_requests(
        self,
        member_id: int,
        badge_id: int,
    ) -> list[BadgeRequestRecord]:
        return [
            r
            for r in self._requests
            if r.member_id == member_id and r.badge_id == badge_id and r.published
        ]
