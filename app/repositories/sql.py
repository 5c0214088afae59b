# app/repositories/sql.py
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.access_scan import AccessScan
from app.models.appointment import Appointment
from app.models.badge import Badge, BadgeRequest, DocumentationSubmission
from app.models.facilitator_profile import FacilitatorHours, FacilitatorProfile
from app.repositories.base import RepositoryError
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
from app.schemas.facilitator import (
    AvailabilityEntry,
    FacilitatorProfileRecord,
    RecurrenceRuleRecord,
)


def _as_utc(value: datetime | None) -> datetime | None:
    """
    Normalize a datetime to aware UTC.

    Applied to rows read back and to every bound passed into a query. Some
    drivers (SQLite) store wall-clock values without the offset and hand
    back naive values; stored values are UTC and naive ones are taken as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _appointment_to_record(row: Appointment) -> AppointmentRecord:
    return AppointmentRecord(
        id=row.id,
        host_id=row.host_id,
        scheduled_start=_as_utc(row.scheduled_start),
        scheduled_end=_as_utc(row.scheduled_end),
        timezone=row.timezone,
        badge_ids=[link.badge_id for link in row.badge_links],
        status=row.status,
        purpose=row.purpose,
        result=row.result,
        attendee_ids=[link.user_id for link in row.attendee_links],
        arrival_status=row.arrival_status,
        arrival_time=_as_utc(row.arrival_time),
        feedback=row.feedback,
    )


class SqlAppointmentRepository:
    supports_date_filter = True
    tracks_arrival_status = True

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_appointments(self, query: AppointmentQuery) -> list[AppointmentRecord]:
        conditions = [Appointment.published.is_(True)]

        if query.purpose is not None:
            conditions.append(Appointment.purpose == query.purpose)
        if query.exclude_canceled:
            conditions.append(
                or_(Appointment.status.is_(None), Appointment.status != CANCELED_STATUS)
            )
        if query.host_id is not None:
            conditions.append(Appointment.host_id == query.host_id)
        if query.start is not None:
            conditions.append(Appointment.scheduled_start >= _as_utc(query.start))
        if query.end is not None:
            conditions.append(Appointment.scheduled_start <= _as_utc(query.end))

        stmt = select(Appointment).where(and_(*conditions)).order_by(Appointment.id)

        try:
            result = await self.db.execute(stmt)
            rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Appointment query failed: {exc}") from exc

        return [_appointment_to_record(row) for row in rows]

    async def get_appointment(self, appointment_id: int) -> AppointmentRecord | None:
        try:
            row = await self.db.get(Appointment, appointment_id)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Appointment lookup failed: {exc}") from exc
        return _appointment_to_record(row) if row is not None else None

    async def record_arrival(
        self,
        appointment_id: int,
        status: str,
        scan_time: datetime | None,
    ) -> None:
        values: dict[str, object] = {"arrival_status": status}
        if scan_time is not None:
            values["arrival_time"] = _as_utc(scan_time)

        stmt = update(Appointment).where(Appointment.id == appointment_id).values(**values)
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise RepositoryError(f"Arrival update failed: {exc}") from exc


class SqlScanRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_scans(
        self,
        user_ids: Sequence[int],
        start: datetime,
        end: datetime,
    ) -> list[ScanEvent]:
        if not user_ids:
            return []

        stmt = (
            select(AccessScan.user_id, AccessScan.created)
            .where(
                and_(
                    AccessScan.user_id.in_(list(user_ids)),
                    AccessScan.created >= _as_utc(start),
                    AccessScan.created <= _as_utc(end),
                )
            )
            .order_by(AccessScan.created)
        )
        try:
            result = await self.db.execute(stmt)
            rows = list(result.all())
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Access scan query failed: {exc}") from exc

        return [ScanEvent(user_id=user_id, created=_as_utc(created)) for user_id, created in rows]


def _hours_to_entry(hours: FacilitatorHours) -> AvailabilityEntry:
    rule = None
    if hours.rule is not None:
        rule = RecurrenceRuleRecord(
            id=hours.rule.id,
            start=_as_utc(hours.rule.start),
            end=_as_utc(hours.rule.end),
            timezone=hours.rule.timezone,
        )
    return AvailabilityEntry(
        start=_as_utc(hours.start),
        end=_as_utc(hours.end),
        timezone=hours.timezone,
        rule=rule,
    )


class SqlProfileRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_profile(self, user_id: int, bundle: str) -> FacilitatorProfileRecord | None:
        # A user may end up with several profiles of one bundle; the oldest wins.
        stmt = (
            select(FacilitatorProfile)
            .where(
                FacilitatorProfile.user_id == user_id,
                FacilitatorProfile.bundle == bundle,
            )
            .order_by(FacilitatorProfile.id)
            .limit(1)
        )
        try:
            result = await self.db.execute(stmt)
            profile = result.scalars().first()
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Profile lookup failed: {exc}") from exc

        if profile is None:
            return None

        return FacilitatorProfileRecord(
            user_id=profile.user_id,
            bundle=profile.bundle,
            capacity=profile.capacity,
            timezone=profile.timezone,
            hours=[_hours_to_entry(h) for h in profile.hours],
        )


def _badge_to_record(badge: Badge) -> BadgeRecord:
    return BadgeRecord(
        id=badge.id,
        label=badge.label,
        capacity=badge.capacity,
        prerequisite_ids=[link.prerequisite_id for link in badge.prerequisite_links],
        documentation_form_id=badge.documentation_form_id,
        documentation_form_url=badge.documentation_form_url,
    )


class SqlBadgeRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_badge(self, badge_id: int) -> BadgeRecord | None:
        try:
            badge = await self.db.get(Badge, badge_id)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Badge lookup failed: {exc}") from exc
        return _badge_to_record(badge) if badge is not None else None

    async def get_badges(self, badge_ids: Sequence[int]) -> dict[int, BadgeRecord]:
        if not badge_ids:
            return {}
        stmt = select(Badge).where(Badge.id.in_(list(badge_ids)))
        try:
            result = await self.db.execute(stmt)
            badges = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Badge lookup failed: {exc}") from exc
        return {badge.id: _badge_to_record(badge) for badge in badges}

    async def list_submissions(
        self,
        member_id: int,
        form_id: str,
    ) -> list[DocumentationSubmissionRecord]:
        stmt = (
            select(DocumentationSubmission)
            .where(
                DocumentationSubmission.form_id == form_id,
                DocumentationSubmission.member_id == member_id,
                DocumentationSubmission.in_draft.is_(False),
            )
            .order_by(DocumentationSubmission.changed.desc())
        )
        try:
            result = await self.db.execute(stmt)
            rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Submission query failed: {exc}") from exc

        return [
            DocumentationSubmissionRecord(
                form_id=row.form_id,
                member_id=row.member_id,
                status=row.status,
                in_draft=row.in_draft,
                changed=_as_utc(row.changed),
            )
            for row in rows
        ]

    async def list_badge_requests(
        self,
        member_id: int,
        badge_id: int,
    ) -> list[BadgeRequestRecord]:
        stmt = select(BadgeRequest).where(
            BadgeRequest.member_id == member_id,
            BadgeRequest.badge_id == badge_id,
            BadgeRequest.published.is_(True),
        )
        try:
            result = await self.db.execute(stmt)
            rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Badge request query failed: {exc}") from exc

        return [
            BadgeRequestRecord(
                member_id=row.member_id,
                badge_id=row.badge_id,
                status=row.status,
                published=row.published,
            )
            for row in rows
        ]
