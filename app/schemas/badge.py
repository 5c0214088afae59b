# app/schemas/badge.py
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BadgeRecord(BaseModel):
    """
    Badge metadata used for capacity resolution and eligibility checks.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., examples=[12])
    label: str = Field(..., examples=["Laser Cutter"])
    capacity: int | None = Field(None, ge=0, examples=[2])
    prerequisite_ids: list[int] = Field(default_factory=list)
    documentation_form_id: str | None = Field(None, examples=["laser_training_doc"])
    documentation_form_url: str | None = None


class DocumentationSubmissionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    form_id: str
    member_id: int
    status: str | None = None
    in_draft: bool = False
    changed: datetime


class BadgeRequestRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    member_id: int
    badge_id: int
    status: str | None = None
    published: bool = True


class EligibilityResult(BaseModel):
    """
    Outcome of the badge prerequisite gate for one member and badge.

    Every blocking reason is reported at once; the checks never short-circuit.
    """

    allowed: bool = Field(True, examples=[False])
    requires_documentation: bool = False
    documentation_approved: bool = True
    documentation_form_id: str | None = None
    documentation_form_url: str | None = None
    prerequisites_required: list[int] = Field(default_factory=list)
    prerequisites_missing: list[int] = Field(default_factory=list)
    prerequisites_missing_labels: list[str] = Field(default_factory=list)
    reasons: list[str] = Field(
        default_factory=list,
        examples=[["Missing active prerequisite badge(s): Woodshop Basics."]],
    )


class CapacityRead(BaseModel):
    """
    Effective capacity of one appointment.
    """

    appointment_id: int = Field(..., examples=[101])
    capacity: int = Field(..., ge=1, examples=[2])
    occupied: int = Field(..., description="Host plus distinct non-host attendees.", examples=[2])
    remaining: int = Field(..., ge=0, examples=[0])
