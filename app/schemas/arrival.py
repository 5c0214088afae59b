# app/schemas/arrival.py
from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ArrivalStatus(str, Enum):
    """
    Enum representing the possible outcomes of a facilitator arrival check.
    """

    ON_TIME = "on_time"
    LATE_GRACE = "late_grace"
    LATE = "late"
    MISSED = "missed"


class ArrivalWindow(BaseModel):
    """
    Time range in which an access scan counts as arrival for one appointment.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(..., description="Scheduled start minus the pre-window.")
    end: datetime = Field(..., description="Scheduled end.")
    scheduled_start: datetime
    timezone: str = "UTC"


class ArrivalOutcome(BaseModel):
    """
    Classification of one appointment's facilitator arrival.
    """

    appointment_id: int = Field(..., examples=[101])
    status: ArrivalStatus = Field(..., examples=["late_grace"])
    scan_time: datetime | None = Field(
        None,
        description="Earliest scan inside the arrival window, if any.",
    )
    window: ArrivalWindow


class BackfillResult(BaseModel):
    """
    Summary payload returned by the arrival backfill.
    """

    start_date: date = Field(..., examples=["2025-11-01"])
    end_date: date = Field(..., examples=["2025-11-07"])
    updated: int = Field(0, description="Appointments whose arrival status was written.")
    skipped: int = Field(
        0,
        description=(
            "Appointments left untouched: already classified, no window, "
            "or window still open."
        ),
    )
    available: bool = Field(
        True,
        description="False when no scan source is configured and nothing was evaluated.",
    )
