# app/api/routes/appointments.py
from http import HTTPStatus
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path

from app.api.dependencies.engine import (
    get_appointment_repository,
    get_badge_repository,
    get_engine_config,
    get_profile_repository,
    get_scan_repository,
)
from app.core.config import EngineConfig
from app.repositories.base import (
    AppointmentRepository,
    BadgeRepository,
    ProfileRepository,
    RepositoryError,
    ScanRepository,
)
from app.schemas.appointment import AppointmentRecord
from app.schemas.arrival import ArrivalOutcome
from app.schemas.badge import CapacityRead
from app.services.arrival import ArrivalResolver
from app.services.capacity_resolver import count_attendees, effective_capacity, seats_remaining

router = APIRouter(prefix="/appointments", tags=["Appointments"])


async def _load_appointment(
    appointments: AppointmentRepository,
    appointment_id: int,
) -> AppointmentRecord:
    appointment = await appointments.get_appointment(appointment_id)
    if appointment is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Appointment with id={appointment_id} not found.",
        )
    return appointment


@router.get(
    "/{appointment_id}/capacity",
    response_model=CapacityRead,
    status_code=HTTPStatus.OK,
    summary="Effective capacity and remaining seats of an appointment",
    description=(
        "Resolve the binding attendee limit of an appointment: the smallest "
        "non-zero capacity among its badges and its facilitator's profile, or "
        "1 when none is configured.\n\n"
        "`occupied` counts the host once plus each distinct non-host attendee."
    ),
    responses={
        200: {
            "description": "Capacity resolved.",
            "content": {
                "application/json": {
                    "example": {
                        "appointment_id": 101,
                        "capacity": 3,
                        "occupied": 2,
                        "remaining": 1,
                    }
                }
            },
        },
        404: {"description": "Appointment not found."},
        503: {"description": "Appointment data could not be loaded."},
    },
)
async def get_appointment_capacity(
    appointment_id: int = Path(..., ge=1, description="Appointment ID."),
    appointments: AppointmentRepository = Depends(get_appointment_repository),
    badges: BadgeRepository = Depends(get_badge_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
    config: EngineConfig = Depends(get_engine_config),
) -> CapacityRead:
    try:
        appointment = await _load_appointment(appointments, appointment_id)
        badge_map = await badges.get_badges(appointment.badge_ids)
        profile = None
        if appointment.host_id:
            profile = await profiles.get_profile(appointment.host_id, config.profile_bundle)
    except RepositoryError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Appointment data is temporarily unavailable.",
        ) from exc

    capacity = effective_capacity(appointment, badge_map, profile)
    return CapacityRead(
        appointment_id=appointment.id,
        capacity=capacity,
        occupied=count_attendees(appointment),
        remaining=seats_remaining(appointment, capacity),
    )


@router.get(
    "/{appointment_id}/arrival",
    response_model=ArrivalOutcome,
    status_code=HTTPStatus.OK,
    summary="Classify the facilitator's arrival for an appointment",
    description=(
        "Look up the facilitator's earliest access scan inside the arrival "
        "window (scheduled start minus the pre-window, up to scheduled end) "
        "and classify it:\n"
        "- `on_time`: at or before the scheduled start\n"
        "- `late_grace`: within the grace period after the start\n"
        "- `late`: later, but still inside the window\n"
        "- `missed`: no scan inside the window\n\n"
        "Nothing is persisted; see `POST /arrivals/backfill` for that."
    ),
    responses={
        404: {"description": "Appointment not found."},
        409: {"description": "Appointment has no usable schedule."},
        503: {"description": "Access scans are not available."},
    },
)
async def get_appointment_arrival(
    appointment_id: int = Path(..., ge=1, description="Appointment ID."),
    appointments: AppointmentRepository = Depends(get_appointment_repository),
    scans: Optional[ScanRepository] = Depends(get_scan_repository),
    config: EngineConfig = Depends(get_engine_config),
) -> ArrivalOutcome:
    if scans is None:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Access scan source is not configured.",
        )

    try:
        appointment = await _load_appointment(appointments, appointment_id)
        outcome = await ArrivalResolver(scans, config).resolve(appointment)
    except RepositoryError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Access scans are temporarily unavailable.",
        ) from exc

    if outcome is None:
        raise HTTPException(
            status_code=HTTPStatus.CONFLICT,
            detail=f"Appointment with id={appointment_id} has no usable schedule.",
        )
    return outcome
