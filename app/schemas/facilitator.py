# app/schemas/facilitator.py
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IntervalState(str, Enum):
    """
    Position of a time interval relative to "now".
    """

    CURRENT = "current"
    PAST = "past"
    FUTURE = "future"


class TimeInterval(BaseModel):
    """
    A closed interval [start, end] with its display time zone.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    timezone: str = "UTC"
    rule_id: int | None = None


class RecurrenceRuleRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    start: datetime | None = None
    end: datetime | None = None
    timezone: str | None = None


class AvailabilityEntry(BaseModel):
    """
    One configured availability entry ("hours") on a facilitator profile.

    Either endpoint may be missing; such entries are dropped when the
    intervals are collected.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None
    timezone: str | None = None
    rule: RecurrenceRuleRecord | None = None


class FacilitatorProfileRecord(BaseModel):
    """
    Facilitator profile normalized at the repository boundary.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    bundle: str = "coordinator"
    capacity: int | None = Field(None, ge=0)
    timezone: str | None = None
    hours: list[AvailabilityEntry] = Field(default_factory=list)


class TermRange(BaseModel):
    """
    The facilitator term selected for term-to-date statistics.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(..., description="Term start, in the term's time zone.")
    end: datetime = Field(..., description="Term end, in the term's time zone.")
    effective_end: datetime = Field(
        ...,
        description="min(end, now): the last instant counted toward the term so far.",
    )
    timezone: str = "UTC"
