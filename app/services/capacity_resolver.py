# app/services/capacity_resolver.py
from __future__ import annotations

from collections.abc import Iterable, Mapping

from app.schemas.appointment import AppointmentRecord
from app.schemas.badge import BadgeRecord
from app.schemas.facilitator import FacilitatorProfileRecord


def resolve_capacity(
    badge_capacities: Iterable[int | None],
    facilitator_capacity: int | None,
) -> int:
    """
    Return the binding attendee limit for one appointment.

    Every present, non-zero limit (from each badge and from the facilitator)
    is a constraint; the smallest one wins. With no constraint at all the
    appointment is treated as single-occupant.
    """
    limits = {value for value in badge_capacities if value}
    if facilitator_capacity:
        limits.add(facilitator_capacity)
    return min(limits) if limits else 1


def effective_capacity(
    appointment: AppointmentRecord,
    badges: Mapping[int, BadgeRecord],
    profile: FacilitatorProfileRecord | None,
) -> int:
    """
    Resolve the capacity of `appointment` from its badges and the host profile.

    Badges missing from `badges` contribute no limit.
    """
    badge_limits = [
        badges[badge_id].capacity
        for badge_id in appointment.badge_ids
        if badge_id in badges
    ]
    return resolve_capacity(badge_limits, profile.capacity if profile else None)


def count_attendees(appointment: AppointmentRecord) -> int:
    """
    Host (always counted once) plus one per distinct non-host attendee.

    This is the occupancy figure used both by the statistics and by the
    seat checks below.
    """
    others = {
        uid
        for uid in appointment.attendee_ids
        if uid and uid != appointment.host_id
    }
    return 1 + len(others)


def seats_remaining(appointment: AppointmentRecord, capacity: int) -> int:
    return max(0, capacity - count_attendees(appointment))

