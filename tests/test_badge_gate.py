# tests/test_badge_gate.py
from datetime import datetime, timezone

import pytest

from app.repositories.memory import InMemoryBadgeRepository
from app.schemas.badge import BadgeRecord, BadgeRequestRecord, DocumentationSubmissionRecord
from app.services.badge_gate import (
    DOCUMENTATION_REASON,
    INVALID_MEMBER_REASON,
    BadgeEligibilityGate,
    evaluate_badge_eligibility,
)

MEMBER = 50

SAFETY = BadgeRecord(id=3, label="Shop Safety")
DUST = BadgeRecord(id=4, label="Dust Collection")
LASER = BadgeRecord(
    id=10,
    label="Laser Cutter",
    prerequisite_ids=[4, 3, 3, 10, 0],
    documentation_form_id="laser_training_doc",
    documentation_form_url="https://forms.example.org/laser",
)


def _submission(status: str, *, in_draft: bool = False, day: int = 1) -> DocumentationSubmissionRecord:
    return DocumentationSubmissionRecord(
        form_id="laser_training_doc",
        member_id=MEMBER,
        status=status,
        in_draft=in_draft,
        changed=datetime(2025, 6, day, tzinfo=timezone.utc),
    )


def _request(badge_id: int, status: str | None = "active", **kwargs) -> BadgeRequestRecord:
    return BadgeRequestRecord(member_id=MEMBER, badge_id=badge_id, status=status, **kwargs)


@pytest.mark.asyncio
async def test_both_gates_report_without_short_circuit():
    """
    Missing documentation and missing prerequisites must both be reported.
    """
    repo = InMemoryBadgeRepository(badges=[SAFETY, DUST, LASER])

    result = await BadgeEligibilityGate(repo).evaluate(MEMBER, LASER)

    assert result.allowed is False
    assert result.requires_documentation is True
    assert result.documentation_approved is False
    assert result.documentation_form_id == "laser_training_doc"
    assert result.documentation_form_url == "https://forms.example.org/laser"
    assert result.prerequisites_required == [3, 4]
    assert result.prerequisites_missing == [3, 4]
    assert result.prerequisites_missing_labels == ["Shop Safety", "Dust Collection"]
    assert result.reasons == [
        DOCUMENTATION_REASON,
        "Missing active prerequisite badge(s): Shop Safety, Dust Collection.",
    ]


@pytest.mark.asyncio
async def test_member_with_approved_documentation_and_prerequisites_is_allowed():
    repo = InMemoryBadgeRepository(
        badges=[SAFETY, DUST, LASER],
        submissions=[_submission("pending", day=1), _submission("Approved", day=2)],
        requests=[_request(3, "active"), _request(4, "")],
    )

    result = await evaluate_badge_eligibility(repo, MEMBER, LASER)

    assert result.allowed is True
    assert result.documentation_approved is True
    assert result.prerequisites_missing == []
    assert result.reasons == []


@pytest.mark.asyncio
async def test_draft_submissions_do_not_count():
    repo = InMemoryBadgeRepository(
        badges=[SAFETY, DUST, LASER],
        submissions=[_submission("approved", in_draft=True)],
        requests=[_request(3), _request(4)],
    )

    result = await BadgeEligibilityGate(repo).evaluate(MEMBER, LASER)

    assert result.allowed is False
    assert result.reasons == [DOCUMENTATION_REASON]


@pytest.mark.asyncio
async def test_duplicate_and_unpublished_requests_do_not_hold_badge():
    repo = InMemoryBadgeRepository(
        badges=[SAFETY, DUST],
        requests=[
            _request(3, "duplicate"),
            _request(4, "active", published=False),
        ],
    )
    gate = BadgeEligibilityGate(repo)

    assert await gate.member_holds_badge(MEMBER, 3) is False
    assert await gate.member_holds_badge(MEMBER, 4) is False


@pytest.mark.asyncio
async def test_badge_without_requirements_is_allowed():
    result = await BadgeEligibilityGate(InMemoryBadgeRepository()).evaluate(MEMBER, SAFETY)

    assert result.allowed is True
    assert result.requires_documentation is False
    assert result.prerequisites_required == []


@pytest.mark.asyncio
async def test_unknown_prerequisite_falls_back_to_generic_label():
    badge = BadgeRecord(id=11, label="CNC Router", prerequisite_ids=[99])

    result = await BadgeEligibilityGate(InMemoryBadgeRepository()).evaluate(MEMBER, badge)

    assert result.prerequisites_missing_labels == ["Badge 99"]
    assert result.reasons == ["Missing active prerequisite badge(s): Badge 99."]


@pytest.mark.asyncio
async def test_invalid_member_is_rejected():
    result = await BadgeEligibilityGate(InMemoryBadgeRepository()).evaluate(0, LASER)

    assert result.allowed is False
    assert result.reasons == [INVALID_MEMBER_REASON]
