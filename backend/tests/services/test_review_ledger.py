"""ReviewLedger: reviews of completed jobs and the reputation they feed.

Tests cover:
    - create: pending by default, categories default to the rating, notification
    - eligibility: completed jobs only, participants only, one review per job
    - moderation drives the rating aggregate (approved reviews only)
    - update / delete recompute the aggregate
    - helpful votes, flags and reviewee responses
"""

from uuid import uuid4

import pytest

from app.core.domain_types import NotificationType, ReviewStatus
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    ValidationError,
)


@pytest.fixture
async def completed_job(services, accepted_job, client_user):
    return await services.job_lifecycle.complete(accepted_job.id, client_user.id)


@pytest.fixture
async def review(services, completed_job, client_user, helper_user):
    return await services.review_ledger.create(
        job_id=completed_job.id,
        reviewer_id=client_user.id,
        reviewee_id=helper_user.id,
        rating=5,
        title="Excellent plumber",
        content="Fixed the leak in twenty minutes.",
    )


# ─── Create ──────────────────────────────────────────────────────

async def test_new_review_is_pending(review, helper_user, sink):
    assert review.status == ReviewStatus.PENDING.value
    assert review.categories == {
        "communication": 5, "quality": 5, "timeliness": 5,
        "professionalism": 5, "value": 5,
    }
    received = sink.of_type(NotificationType.REVIEW_RECEIVED)
    assert [n.recipient_id for n in received] == [helper_user.id]


async def test_pending_review_not_in_aggregate(review, helper_user, test_db):
    await test_db.refresh(helper_user)
    assert helper_user.rating_total_reviews == 0
    assert helper_user.rating_average == 0.0


async def test_review_without_moderation_counts_immediately(
    services, completed_job, client_user, helper_user, test_db,
):
    services.review_ledger.require_moderation = False
    review = await services.review_ledger.create(
        job_id=completed_job.id, reviewer_id=client_user.id, reviewee_id=helper_user.id,
        rating=4, title="Good", content="Solid work", categories={"timeliness": 2},
    )

    assert review.status == ReviewStatus.APPROVED.value
    await test_db.refresh(helper_user)
    assert helper_user.rating_average == 4.0
    assert helper_user.rating_categories["timeliness"] == 2.0


async def test_duplicate_review_conflicts(services, review, completed_job, client_user, helper_user):
    with pytest.raises(ConflictError):
        await services.review_ledger.create(
            job_id=completed_job.id, reviewer_id=client_user.id, reviewee_id=helper_user.id,
            rating=1, title="Changed my mind", content="Actually not great",
        )


async def test_both_participants_can_review(services, review, completed_job, client_user, helper_user):
    other = await services.review_ledger.create(
        job_id=completed_job.id, reviewer_id=helper_user.id, reviewee_id=client_user.id,
        rating=4, title="Friendly client", content="Clear instructions, paid promptly.",
    )
    assert other.reviewee_id == client_user.id


async def test_review_requires_completed_job(services, accepted_job, client_user, helper_user):
    with pytest.raises(InvalidStateError):
        await services.review_ledger.create(
            job_id=accepted_job.id, reviewer_id=client_user.id, reviewee_id=helper_user.id,
            rating=5, title="Early", content="Not done yet",
        )


async def test_outsider_cannot_review(services, completed_job, second_helper, helper_user):
    with pytest.raises(ForbiddenError):
        await services.review_ledger.create(
            job_id=completed_job.id, reviewer_id=second_helper.id, reviewee_id=helper_user.id,
            rating=1, title="Drive-by", content="Never met them",
        )


async def test_invalid_rating_rejected_before_lookup(services, client_user, helper_user):
    with pytest.raises(ValidationError):
        await services.review_ledger.create(
            job_id=uuid4(), reviewer_id=client_user.id, reviewee_id=helper_user.id,
            rating=0, title="t", content="c",
        )


# ─── Moderation ──────────────────────────────────────────────────

async def test_approval_updates_aggregate(services, review, admin_user, helper_user, test_db):
    moderated = await services.review_ledger.moderate(review.id, admin_user.id, "approved")

    assert moderated.status == ReviewStatus.APPROVED.value
    assert moderated.moderated_by_id == admin_user.id
    await test_db.refresh(helper_user)
    assert helper_user.rating_average == 5.0
    assert helper_user.rating_total_reviews == 1
    assert helper_user.rating_distribution == {"1": 0, "2": 0, "3": 0, "4": 0, "5": 1}
    assert set(helper_user.rating_categories.values()) == {5.0}


async def test_rejection_notifies_reviewer(services, review, admin_user, client_user, sink):
    await services.review_ledger.moderate(review.id, admin_user.id, "rejected", "Off-topic")

    moderated = sink.of_type(NotificationType.REVIEW_MODERATED)
    assert moderated[0].recipient_id == client_user.id
    assert moderated[0].title == "Review Rejected"


async def test_non_moderator_forbidden(services, review, helper_user):
    with pytest.raises(ForbiddenError):
        await services.review_ledger.moderate(review.id, helper_user.id, "approved")


async def test_approved_then_rejected_drops_from_aggregate(
    services, review, admin_user, helper_user, test_db,
):
    await services.review_ledger.moderate(review.id, admin_user.id, "approved")
    await services.review_ledger.moderate(review.id, admin_user.id, "rejected")

    await test_db.refresh(helper_user)
    assert helper_user.rating_total_reviews == 0


# ─── Update / delete ─────────────────────────────────────────────

async def test_update_recomputes(services, review, admin_user, client_user, helper_user, test_db):
    await services.review_ledger.moderate(review.id, admin_user.id, "approved")
    updated = await services.review_ledger.update(review.id, client_user.id, rating=3)

    assert updated.rating == 3
    await test_db.refresh(helper_user)
    assert helper_user.rating_average == 3.0


async def test_update_by_other_user_forbidden(services, review, helper_user):
    with pytest.raises(ForbiddenError):
        await services.review_ledger.update(review.id, helper_user.id, rating=1)


async def test_delete_recomputes(services, review, admin_user, client_user, helper_user, test_db):
    await services.review_ledger.moderate(review.id, admin_user.id, "approved")
    await services.review_ledger.delete(review.id, client_user.id)

    await test_db.refresh(helper_user)
    assert helper_user.rating_total_reviews == 0
    assert await services.review_ledger.list_for_user(helper_user.id, status=None) == []


# ─── Community signals ───────────────────────────────────────────

async def test_helpful_votes_are_membership(services, review, second_helper, admin_user):
    await services.review_ledger.mark_helpful(review.id, second_helper.id, True)
    voted = await services.review_ledger.mark_helpful(review.id, second_helper.id, True)
    assert voted.helpful_votes_up == 1

    await services.review_ledger.mark_helpful(review.id, admin_user.id, True)
    unvoted = await services.review_ledger.mark_helpful(review.id, second_helper.id, False)
    assert unvoted.helpful_votes_up == 1
    assert unvoted.helpful_by == [str(admin_user.id)]


async def test_flag_once_per_user(services, review, second_helper):
    await services.review_ledger.flag(review.id, second_helper.id, "spam")
    flagged = await services.review_ledger.flag(review.id, second_helper.id, "fake")

    assert len(flagged.flags) == 1
    assert flagged.flags[0]["reason"] == "fake"


async def test_reviewee_can_respond(services, review, helper_user, client_user):
    responded = await services.review_ledger.respond(review.id, helper_user.id, "Thanks!")
    assert responded.response_content == "Thanks!"
    assert responded.response_created_at is not None

    with pytest.raises(ForbiddenError):
        await services.review_ledger.respond(review.id, client_user.id, "Me too")


# ─── Listings ────────────────────────────────────────────────────

async def test_job_listing_shows_approved_only(services, review, completed_job, admin_user):
    assert await services.review_ledger.list_for_job(completed_job.id) == []

    await services.review_ledger.moderate(review.id, admin_user.id, "approved")
    listed = await services.review_ledger.list_for_job(completed_job.id)
    assert [r.id for r in listed] == [review.id]
