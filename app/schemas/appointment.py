# app/schemas/appointment.py
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


CANCELED_STATUS = "canceled"


class AppointmentRecord(BaseModel):
    """
    Read-only view of one appointment as consumed by the statistics and
    arrival components.

    Repositories normalize whatever storage shape they read into this model,
    with every datetime timezone-aware.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Identifier of the appointment.", examples=[101])
    host_id: int | None = Field(
        None,
        description="User id of the facilitator hosting the appointment.",
        examples=[7],
    )
    scheduled_start: datetime | None = Field(
        None,
        description="Scheduled start (timezone-aware).",
        examples=["2025-11-10T17:00:00Z"],
    )
    scheduled_end: datetime | None = Field(
        None,
        description="Scheduled end (timezone-aware).",
        examples=["2025-11-10T18:00:00Z"],
    )
    timezone: str | None = Field(
        None,
        description="Time zone the appointment was scheduled in.",
        examples=["America/Chicago"],
    )
    badge_ids: list[int] = Field(
        default_factory=list,
        description="Badges covered by the session. Repeats are kept.",
    )
    status: str | None = Field(None, examples=["confirmed"])
    purpose: str | None = Field(None, examples=["checkout"])
    result: str | None = Field(None, examples=["successful"])
    attendee_ids: list[int] = Field(
        default_factory=list,
        description="Members listed on the appointment (the host may or may not appear).",
    )
    arrival_status: str | None = Field(None, examples=["on_time"])
    arrival_time: datetime | None = None
    feedback: str | None = None


class AppointmentQuery(BaseModel):
    """
    Filters pushed down to the appointment repository.

    `start`/`end` are only honoured by repositories whose
    `supports_date_filter` is True; others ignore them.
    """

    model_config = ConfigDict(frozen=True)

    purpose: str | None = None
    host_id: int | None = None
    exclude_canceled: bool = True
    start: datetime | None = None
    end: datetime | None = None


class ScanEvent(BaseModel):
    """
    One access-log scan for a user.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    created: datetime
