"""Review Rules: validation, eligibility and vote/flag bookkeeping for the ReviewLedger.

Invariants:
    - rating and every category score are integers in 1..5
    - Only a participant of a completed job reviews it, never themselves,
      and only the other participant is reviewable
    - helpful vote count == len(helpful_by); un-voting a non-voter is a no-op
    - flags hold at most one entry per user (later flags overwrite the reason)
"""

from datetime import datetime

from app.core.domain_types import (
    FlagReason,
    JobStatus,
    ReviewCategory,
    ReviewStatus,
    UserId,
)
from app.core.errors import ForbiddenError, InvalidStateError, ValidationError
from app.core.repository_protocols import JobLike, ReviewLike

TITLE_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 1000
RESPONSE_MAX_LENGTH = 1000


def validate_score(value: object, field: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
        raise ValidationError(
            f"{field} must be a whole number between 1 and 5", field=field,
        )
    return value


def resolve_categories(rating: int, categories: dict | None) -> dict[str, int]:
    """Missing categories default to the overall rating."""
    categories = categories or {}
    unknown = set(categories) - {c.value for c in ReviewCategory}
    if unknown:
        raise ValidationError(
            f"Unknown review categories: {sorted(unknown)}", field="categories",
        )
    return {
        c.value: validate_score(categories.get(c.value, rating), f"categories.{c.value}")
        for c in ReviewCategory
    }


def validate_text(value: str | None, field: str, max_length: int) -> str:
    value = (value or "").strip()
    if not value or len(value) > max_length:
        raise ValidationError(
            f"{field} is required (max {max_length} chars)", field=field,
        )
    return value


def check_can_review(job: JobLike, reviewer_id: UserId, reviewee_id: UserId) -> None:
    status = JobStatus(job.status)
    if status != JobStatus.COMPLETED:
        raise InvalidStateError("Can only review completed jobs", status.value)
    participants = {job.creator_id, job.assigned_to_id} - {None}
    if reviewer_id not in participants:
        raise ForbiddenError("You can only review jobs you were involved in")
    if reviewer_id == reviewee_id:
        raise ValidationError("You cannot review yourself", field="reviewee_id")
    if reviewee_id not in participants:
        raise ValidationError(
            "The reviewee must be the other participant of the job", field="reviewee_id",
        )


def require_reviewer(review: ReviewLike, actor_id: UserId, action: str) -> None:
    if review.reviewer_id != actor_id:
        raise ForbiddenError(f"Not authorized to {action} this review")


def require_reviewee(review: ReviewLike, actor_id: UserId) -> None:
    if review.reviewee_id != actor_id:
        raise ForbiddenError("Not authorized to respond to this review")


def toggle_helpful(helpful_by: list[str], user_id: UserId, is_helpful: bool) -> list[str]:
    """Return the new helpful_by membership list."""
    voter = str(user_id)
    members = list(helpful_by or [])
    if is_helpful and voter not in members:
        members.append(voter)
    elif not is_helpful and voter in members:
        members.remove(voter)
    return members


def upsert_flag(
    flags: list[dict], user_id: UserId, reason: str, now: datetime,
) -> list[dict]:
    try:
        flag_reason = FlagReason(reason)
    except ValueError:
        raise ValidationError(f"Unknown flag reason '{reason}'", field="reason")
    entry = {"user_id": str(user_id), "reason": flag_reason.value, "created_at": now.isoformat()}
    updated = [f for f in (flags or []) if f.get("user_id") != str(user_id)]
    updated.append(entry)
    return updated


def validate_moderation_status(status: str) -> ReviewStatus:
    try:
        decided = ReviewStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown review status '{status}'", field="status")
    if decided == ReviewStatus.PENDING:
        raise ValidationError("Moderation must approve or reject", field="status")
    return decided
