# app/schemas/stats.py
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.facilitator import TermRange


class SummaryOptions(BaseModel):
    """
    Filters accepted by the statistics aggregator.
    """

    model_config = ConfigDict(frozen=True)

    host_id: int | None = Field(None, description="Restrict to one facilitator.", examples=[7])
    purpose: str | None = Field(None, description="Restrict to one purpose tag.", examples=["checkout"])
    include_cancelled: bool = Field(
        False,
        description="Include appointments whose status is 'canceled'.",
    )
    use_facilitator_terms: bool = Field(
        False,
        description=(
            "Bound each facilitator's data by their own current/past/future term "
            "instead of the global start/end."
        ),
    )


class FacilitatorStats(BaseModel):
    """
    Per-facilitator statistics over the requested window.
    """

    model_config = ConfigDict(frozen=True)

    uid: int = Field(..., examples=[7])
    appointments: int = Field(0, examples=[12])
    badge_sessions: int = Field(0, description="Appointments covering at least one badge.")
    badges: int = Field(0, description="Total badge references across appointments.")
    attendees: int = Field(0, description="Host plus distinct non-host attendees, summed.")
    feedback: int = Field(0, description="Appointments with a result or feedback recorded.")
    feedback_rate: float = Field(0, description="feedback / appointments * 100 (1 decimal).")
    cancelled: int = 0
    purpose_counts: dict[str, int] = Field(default_factory=dict)
    result_counts: dict[str, int] = Field(default_factory=dict)
    status_counts: dict[str, int] = Field(default_factory=dict)
    arrival_status_counts: dict[str, int] = Field(default_factory=dict)
    badges_breakdown: dict[int, int] = Field(default_factory=dict)
    latest: datetime | None = Field(None, description="Latest appointment start seen.")
    appointment_day_count: int = Field(0, description="Distinct calendar days with appointments.")
    arrival_days: int | None = Field(
        None,
        description="Days with at least one access scan (None when scans are unavailable).",
    )
    arrival_rate: float | None = Field(
        None,
        description="arrival_days / appointment_day_count * 100 (1 decimal).",
    )
    term_start: datetime | None = None
    term_end: datetime | None = None
    term_elapsed_weeks: float | None = None
    term_elapsed_months: float | None = None
    appointments_per_week: float | None = None
    appointments_per_month: float | None = None


class RateAverages(BaseModel):
    """
    Arithmetic mean of each per-facilitator rate across facilitators with a value.
    """

    model_config = ConfigDict(frozen=True)

    appointments_per_week: float = 0
    appointments_per_month: float = 0
    feedback_rate: float = 0
    arrival_rate: float = 0


class SummaryResult(BaseModel):
    """
    Aggregated appointment statistics, global and per facilitator.
    """

    model_config = ConfigDict(frozen=True)

    total_appointments: int = 0
    total_badge_appointments: int = 0
    total_badges: int = 0
    total_attendees: int = 0
    total_feedback: int = 0
    feedback_rate: float = 0
    cancelled_total: int = 0
    total_appointment_days: int = 0
    total_arrival_days: int = 0
    arrival_rate: float | None = None
    arrival_available: bool = Field(
        False,
        description="True when an access-scan source was available for presence data.",
    )
    arrival_status_totals: dict[str, int] = Field(default_factory=dict)
    arrival_status_available: bool = False
    facilitators: dict[int, FacilitatorStats] = Field(default_factory=dict)
    purpose_totals: dict[str, int] = Field(default_factory=dict)
    result_totals: dict[str, int] = Field(default_factory=dict)
    status_totals: dict[str, int] = Field(default_factory=dict)
    badge_ids: list[int] = Field(default_factory=list, description="Distinct badges seen, sorted.")
    facilitator_rate_averages: RateAverages = Field(default_factory=RateAverages)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal notices, e.g. date filters applied in memory.",
    )


class FacilitatorDetail(BaseModel):
    """
    Term-to-date and lifetime statistics for one facilitator.
    """

    host_id: int = Field(..., examples=[7])
    term: FacilitatorStats | None = Field(
        None,
        description="Statistics bounded by the facilitator's selected term.",
    )
    lifetime: FacilitatorStats | None = Field(
        None,
        description="All-time statistics for the facilitator.",
    )
    term_range: TermRange | None = Field(
        None,
        description="The facilitator's selected term, when availability is configured.",
    )
    active_rule_id: int | None = Field(
        None,
        description="Recurrence rule behind the selected recurring availability.",
        examples=[42],
    )
