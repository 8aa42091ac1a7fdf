"""Review Routes: ReviewLedger operations over HTTP."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.dependencies import Services, get_actor_id, get_services
from app.core.domain_types import ReviewStatus, UserId
from app.core.errors import ValidationError
from app.schemas.review import (
    FlagCreate,
    HelpfulVote,
    ModerationDecision,
    ReviewCreate,
    ReviewReply,
    ReviewResponse,
    ReviewUpdate,
)

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    body: ReviewCreate,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.review_ledger.create(
        body.job_id, actor_id, body.reviewee_id,
        body.rating, body.title, body.content, body.categories,
    )


@router.get("/user/{user_id}", response_model=list[ReviewResponse])
async def list_user_reviews(
    user_id: UUID,
    status_filter: str = Query("approved", alias="status"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    services: Services = Depends(get_services),
):
    """status=all lists every review regardless of moderation state."""
    review_status = None
    if status_filter != "all":
        try:
            review_status = ReviewStatus(status_filter)
        except ValueError:
            raise ValidationError(f"Unknown review status '{status_filter}'", field="status")
    return await services.review_ledger.list_for_user(user_id, review_status, limit, offset)


@router.get("/job/{job_id}", response_model=list[ReviewResponse])
async def list_job_reviews(
    job_id: UUID,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    services: Services = Depends(get_services),
):
    return await services.review_ledger.list_for_job(job_id, limit, offset)


@router.patch("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: UUID,
    body: ReviewUpdate,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.review_ledger.update(
        review_id, actor_id, **body.model_dump(exclude_unset=True),
    )


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: UUID,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    await services.review_ledger.delete(review_id, actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{review_id}/helpful", response_model=ReviewResponse)
async def mark_review_helpful(
    review_id: UUID,
    body: HelpfulVote,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.review_ledger.mark_helpful(review_id, actor_id, body.is_helpful)


@router.post("/{review_id}/flag", response_model=ReviewResponse)
async def flag_review(
    review_id: UUID,
    body: FlagCreate,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.review_ledger.flag(review_id, actor_id, body.reason)


@router.post("/{review_id}/respond", response_model=ReviewResponse)
async def respond_to_review(
    review_id: UUID,
    body: ReviewReply,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.review_ledger.respond(review_id, actor_id, body.content)


@router.post("/{review_id}/moderate", response_model=ReviewResponse)
async def moderate_review(
    review_id: UUID,
    body: ModerationDecision,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.review_ledger.moderate(
        review_id, actor_id, body.status, body.reason,
    )
