# app/api/routes/badges.py
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Path

from app.api.dependencies.engine import get_badge_repository
from app.repositories.base import BadgeRepository, RepositoryError
from app.schemas.badge import EligibilityResult
from app.services.badge_gate import evaluate_badge_eligibility

router = APIRouter(prefix="/badges", tags=["Badges"])


@router.get(
    "/{badge_id}/eligibility/{member_id}",
    response_model=EligibilityResult,
    status_code=HTTPStatus.OK,
    summary="Check whether a member may request a badge",
    description=(
        "Evaluate both badge gates for a member:\n"
        "- **documentation**: when the badge references a training "
        "documentation form, an approved non-draft submission is required\n"
        "- **prerequisites**: every prerequisite badge must be held with an "
        "active (or blank) status\n\n"
        "Both gates are always evaluated; `reasons` lists every blocking "
        "condition in human-readable form."
    ),
    responses={
        200: {
            "description": "Eligibility evaluated.",
            "content": {
                "application/json": {
                    "example": {
                        "allowed": False,
                        "requires_documentation": True,
                        "documentation_approved": False,
                        "documentation_form_id": "laser_training_doc",
                        "documentation_form_url": None,
                        "prerequisites_required": [3, 4],
                        "prerequisites_missing": [4],
                        "prerequisites_missing_labels": ["Shop Safety"],
                        "reasons": [
                            "Documentation approval is required before this badge can be requested.",
                            "Missing active prerequisite badge(s): Shop Safety.",
                        ],
                    }
                }
            },
        },
        404: {"description": "Badge not found."},
        503: {"description": "Badge data could not be loaded."},
    },
)
async def get_badge_eligibility(
    badge_id: int = Path(..., ge=1, description="Badge ID."),
    member_id: int = Path(..., description="Member user ID."),
    badges: BadgeRepository = Depends(get_badge_repository),
) -> EligibilityResult:
    try:
        badge = await badges.get_badge(badge_id)
        if badge is None:
            raise HTTPException(
                status_code=HTTPStatus.NOT_FOUND,
                detail=f"Badge with id={badge_id} not found.",
            )
        return await evaluate_badge_eligibility(badges, member_id, badge)
    except RepositoryError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Badge data is temporarily unavailable.",
        ) from exc
