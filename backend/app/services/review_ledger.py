"""ReviewLedger: reviews of completed jobs and the rating recomputes they trigger.

Invariants:
    - All input is validated before any read or write
    - One review per (reviewer, job); duplicates are ConflictError whether caught
      by the pre-check or by the unique constraint
    - Every mutation of a review's rating or status re-runs RatingAggregator
      for the reviewee; aggregation errors propagate
    - Notifications are fire-and-forget through NotificationSink

Design Decisions:
    - New reviews start pending when moderation is required, approved otherwise
    - Helpful votes are a membership list; the up-count is derived from it
"""

import logging
from datetime import datetime, timezone

from app.core.domain_types import JobId, ReviewId, ReviewStatus, UserId
from app.core.enforce_reviews import (
    CONTENT_MAX_LENGTH,
    RESPONSE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    check_can_review,
    require_reviewee,
    require_reviewer,
    resolve_categories,
    toggle_helpful,
    upsert_flag,
    validate_moderation_status,
    validate_score,
    validate_text,
)
from app.core.errors import (
    ConflictError,
    ErrorContext,
    ForbiddenError,
    NotFoundError,
)
from app.core.notifications import review_moderated, review_received
from app.core.repository_protocols import (
    JobRepository,
    NotificationSink,
    ReviewRepository,
    UserDirectory,
)
from app.models.review import Review
from app.services.rating_aggregator import RatingAggregator

logger = logging.getLogger(__name__)


class ReviewLedger:

    def __init__(
        self,
        reviews: ReviewRepository,
        jobs: JobRepository,
        users: UserDirectory,
        aggregator: RatingAggregator,
        notifications: NotificationSink,
        require_moderation: bool = True,
    ):
        self.reviews = reviews
        self.jobs = jobs
        self.users = users
        self.aggregator = aggregator
        self.notifications = notifications
        self.require_moderation = require_moderation

    async def _get(self, review_id: ReviewId) -> Review:
        review = await self.reviews.get(review_id)
        if review is None:
            raise NotFoundError("Review", review_id)
        return review

    # ─── Create / edit ───────────────────────────────────────────

    async def create(
        self,
        job_id: JobId,
        reviewer_id: UserId,
        reviewee_id: UserId,
        rating: int,
        title: str,
        content: str,
        categories: dict | None = None,
    ) -> Review:
        rating = validate_score(rating, "rating")
        scores = resolve_categories(rating, categories)
        title = validate_text(title, "title", TITLE_MAX_LENGTH)
        content = validate_text(content, "content", CONTENT_MAX_LENGTH)

        job = await self.jobs.get(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        check_can_review(job, reviewer_id, reviewee_id)

        if await self.reviews.find_by_reviewer_and_job(reviewer_id, job_id):
            raise ConflictError(
                "You have already reviewed this job",
                ErrorContext(job_id=str(job_id), user_id=str(reviewer_id)),
            )
        if await self.users.find_by_id(reviewee_id) is None:
            raise NotFoundError("User", reviewee_id)

        status = ReviewStatus.PENDING if self.require_moderation else ReviewStatus.APPROVED
        review = await self.reviews.add(Review(
            reviewer_id=reviewer_id,
            reviewee_id=reviewee_id,
            job_id=job_id,
            rating=rating,
            title=title,
            content=content,
            categories=scores,
            status=status.value,
            helpful_by=[],
            helpful_votes_up=0,
            flags=[],
        ))
        logger.info(
            f"Review created ({status.value})",
            extra={"review_id": str(review.id), "job_id": str(job_id), "user_id": str(reviewer_id)},
        )

        await self.notifications.notify(review_received(review, job.title))
        await self.aggregator.recompute(reviewee_id)
        return review

    async def update(
        self,
        review_id: ReviewId,
        actor_id: UserId,
        *,
        rating: int | None = None,
        title: str | None = None,
        content: str | None = None,
        categories: dict | None = None,
    ) -> Review:
        if rating is not None:
            rating = validate_score(rating, "rating")
        if title is not None:
            title = validate_text(title, "title", TITLE_MAX_LENGTH)
        if content is not None:
            content = validate_text(content, "content", CONTENT_MAX_LENGTH)

        review = await self._get(review_id)
        require_reviewer(review, actor_id, "update")

        if rating is not None:
            review.rating = rating
        if categories is not None:
            review.categories = resolve_categories(review.rating, categories)
        if title is not None:
            review.title = title
        if content is not None:
            review.content = content
        await self.reviews.save(review)
        logger.info("Review updated", extra={"review_id": str(review_id)})

        await self.aggregator.recompute(review.reviewee_id)
        return review

    async def delete(self, review_id: ReviewId, actor_id: UserId) -> None:
        review = await self._get(review_id)
        require_reviewer(review, actor_id, "delete")
        reviewee_id = review.reviewee_id

        await self.reviews.delete(review_id)
        logger.info("Review deleted", extra={"review_id": str(review_id)})

        await self.aggregator.recompute(reviewee_id)

    # ─── Community signals ───────────────────────────────────────

    async def mark_helpful(
        self, review_id: ReviewId, user_id: UserId, is_helpful: bool,
    ) -> Review:
        review = await self._get(review_id)
        review.helpful_by = toggle_helpful(review.helpful_by, user_id, is_helpful)
        review.helpful_votes_up = len(review.helpful_by)
        await self.reviews.save(review)
        return review

    async def flag(self, review_id: ReviewId, user_id: UserId, reason: str) -> Review:
        review = await self._get(review_id)
        review.flags = upsert_flag(
            review.flags, user_id, reason, datetime.now(timezone.utc),
        )
        await self.reviews.save(review)
        logger.info(
            f"Review flagged ({reason})",
            extra={"review_id": str(review_id), "user_id": str(user_id)},
        )
        return review

    async def respond(self, review_id: ReviewId, reviewee_id: UserId, content: str) -> Review:
        content = validate_text(content, "content", RESPONSE_MAX_LENGTH)
        review = await self._get(review_id)
        require_reviewee(review, reviewee_id)

        review.response_content = content
        review.response_created_at = datetime.now(timezone.utc)
        await self.reviews.save(review)
        return review

    # ─── Moderation ──────────────────────────────────────────────

    async def moderate(
        self,
        review_id: ReviewId,
        moderator_id: UserId,
        status: str,
        reason: str | None = None,
    ) -> Review:
        decided = validate_moderation_status(status)
        moderator = await self.users.find_by_id(moderator_id)
        if moderator is None or not (moderator.is_moderator or moderator.is_admin):
            raise ForbiddenError("Only moderators can moderate reviews")

        review = await self._get(review_id)
        review.status = decided.value
        review.moderated_by_id = moderator_id
        review.moderated_at = datetime.now(timezone.utc)
        review.moderation_reason = reason
        await self.reviews.save(review)
        logger.info(
            f"Review {decided.value}",
            extra={"review_id": str(review_id), "user_id": str(moderator_id)},
        )

        await self.notifications.notify(review_moderated(review, reason))
        await self.aggregator.recompute(review.reviewee_id)
        return review

    # ─── Listings ────────────────────────────────────────────────

    async def list_for_user(
        self,
        reviewee_id: UserId,
        status: ReviewStatus | None = ReviewStatus.APPROVED,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Review]:
        return await self.reviews.list_for_reviewee(reviewee_id, status, limit, offset)

    async def list_for_job(
        self, job_id: JobId, limit: int = 10, offset: int = 0,
    ) -> list[Review]:
        return await self.reviews.list_for_job(job_id, limit, offset)
