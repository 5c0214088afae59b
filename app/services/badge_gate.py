# app/services/badge_gate.py
from __future__ import annotations

from app.core.logging import get_logger
from app.repositories.base import BadgeRepository
from app.schemas.badge import BadgeRecord, EligibilityResult

logger = get_logger(component="badge_gate")

APPROVED_STATUS = "approved"
HOLDING_STATUSES = frozenset({"", "active"})

INVALID_MEMBER_REASON = "Invalid member account."
DOCUMENTATION_REASON = "Documentation approval is required before this badge can be requested."


class BadgeEligibilityGate:
    """
    Evaluates whether a member may progress toward a badge.

    Two independent conditions:
    - documentation: when the badge references a training documentation
      form, the member needs an approved, non-draft submission;
    - prerequisites: the member needs an active (or blank-status) request
      for every prerequisite badge.

    Both checks always run so the result carries every blocking reason.
    """

    def __init__(self, badges: BadgeRepository) -> None:
        self.badges = badges

    async def evaluate(self, member_id: int, badge: BadgeRecord) -> EligibilityResult:
        result = EligibilityResult()

        if member_id <= 0:
            result.allowed = False
            result.reasons.append(INVALID_MEMBER_REASON)
            return result

        form_id = badge.documentation_form_id or None
        if form_id is not None:
            result.requires_documentation = True
            result.documentation_form_id = form_id
            result.documentation_form_url = badge.documentation_form_url
            result.documentation_approved = await self.has_approved_documentation(
                member_id, form_id
            )
            if not result.documentation_approved:
                result.allowed = False
                result.reasons.append(DOCUMENTATION_REASON)

        prerequisites = self.prerequisite_ids(badge)
        result.prerequisites_required = prerequisites
        for prereq_id in prerequisites:
            if not await self.member_holds_badge(member_id, prereq_id):
                result.allowed = False
                result.prerequisites_missing.append(prereq_id)

        if result.prerequisites_missing:
            labels = await self._labels(result.prerequisites_missing)
            result.prerequisites_missing_labels = labels
            result.reasons.append(
                "Missing active prerequisite badge(s): " + ", ".join(labels) + "."
            )

        logger.debug(
            "badge_gate_evaluated",
            member_id=member_id,
            badge_id=badge.id,
            allowed=result.allowed,
        )
        return result

    async def has_approved_documentation(self, member_id: int, form_id: str) -> bool:
        """
        True when any non-draft submission for the form has status 'approved'.
        """
        if member_id <= 0 or not form_id:
            return False

        for submission in await self.badges.list_submissions(member_id, form_id):
            if (submission.status or "").strip().lower() == APPROVED_STATUS:
                return True
        return False

    async def member_holds_badge(self, member_id: int, badge_id: int) -> bool:
        """
        True when the member has a published request for the badge whose
        status is blank or 'active' (not 'duplicate', 'revoked', ...).
        """
        if member_id <= 0 or badge_id <= 0:
            return False

        for request in await self.badges.list_badge_requests(member_id, badge_id):
            if (request.status or "").strip().lower() in HOLDING_STATUSES:
                return True
        return False

    @staticmethod
    def prerequisite_ids(badge: BadgeRecord) -> list[int]:
        return sorted({pid for pid in badge.prerequisite_ids if pid > 0 and pid != badge.id})

    async def _labels(self, badge_ids: list[int]) -> list[str]:
        found = await self.badges.get_badges(badge_ids)
        return [found[bid].label if bid in found else f"Badge {bid}" for bid in badge_ids]


async def evaluate_badge_eligibility(
    badges: BadgeRepository,
    member_id: int,
    badge: BadgeRecord,
) -> EligibilityResult:
    return await BadgeEligibilityGate(badges).evaluate(member_id, badge)
