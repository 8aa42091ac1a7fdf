"""JobLifecycle: job state machine over the SQL repositories.

Tests cover:
    - create: validation, jobs_posted stat, nearby helper fan-out
    - accept: assignment, stats, notification, second accept rejected
    - complete: both participants counted, optional review of the counterpart
    - cancel: creator cancels (terminal), assignee withdraws (reopens)
    - update / reopen / delete / record_view / toggle_save
"""

from uuid import uuid4

import pytest

from app.core.domain_types import JobStatus, NotificationType, ReviewStatus
from app.core.errors import (
    ForbiddenError,
    InvalidStateError,
    NotAvailableError,
    NotFoundError,
    ValidationError,
)
from tests.services.builders import job_fields


# ─── Create ──────────────────────────────────────────────────────

async def test_create_job_defaults(services, client_user, test_db):
    job = await services.job_lifecycle.create(client_user.id, job_fields())

    assert job.status == JobStatus.OPEN.value
    assert job.assigned_to_id is None
    assert job.max_distance_km == 25
    assert job.requirements["skills"] == ["plumbing"]
    await test_db.refresh(client_user)
    assert client_user.jobs_posted == 1


async def test_create_rejects_inverted_budget(services, client_user):
    with pytest.raises(ValidationError):
        await services.job_lifecycle.create(
            client_user.id, job_fields(budget_min=200, budget_max=100),
        )


async def test_create_notifies_nearby_helpers_only(
    services, client_user, helper_user, second_helper, far_helper, sink,
):
    job = await services.job_lifecycle.create(client_user.id, job_fields())

    posted = sink.of_type(NotificationType.JOB_POSTED)
    recipients = {n.recipient_id for n in posted}
    assert recipients == {helper_user.id, second_helper.id}
    assert all(n.payload["job_id"] == str(job.id) for n in posted)


# ─── Accept ──────────────────────────────────────────────────────

async def test_accept_assigns_helper(services, open_job, helper_user, client_user, sink, test_db):
    job = await services.job_lifecycle.accept(open_job.id, helper_user.id)

    assert job.status == JobStatus.ACCEPTED.value
    assert job.assigned_to_id == helper_user.id
    assert job.accepted_at is not None

    await test_db.refresh(helper_user)
    await test_db.refresh(client_user)
    assert helper_user.jobs_accepted == 1
    assert client_user.jobs_assigned == 1

    accepted = sink.of_type(NotificationType.JOB_ACCEPTED)
    assert len(accepted) == 1
    assert accepted[0].recipient_id == client_user.id
    assert "Hugo Tester" in accepted[0].message


async def test_second_accept_not_available(services, accepted_job, second_helper):
    with pytest.raises(NotAvailableError):
        await services.job_lifecycle.accept(accepted_job.id, second_helper.id)


async def test_accept_own_job_forbidden(services, open_job, client_user):
    with pytest.raises(ForbiddenError):
        await services.job_lifecycle.accept(open_job.id, client_user.id)


async def test_accept_unknown_job(services, helper_user):
    with pytest.raises(NotFoundError):
        await services.job_lifecycle.accept(uuid4(), helper_user.id)


# ─── Complete ────────────────────────────────────────────────────

async def test_complete_counts_both_participants(
    services, accepted_job, client_user, helper_user, sink, test_db,
):
    job = await services.job_lifecycle.complete(accepted_job.id, client_user.id)

    assert job.status == JobStatus.COMPLETED.value
    assert job.completed_at is not None
    await test_db.refresh(client_user)
    await test_db.refresh(helper_user)
    assert client_user.jobs_completed == 1
    assert helper_user.jobs_completed == 1
    completed = sink.of_type(NotificationType.JOB_COMPLETED)
    assert [n.recipient_id for n in completed] == [helper_user.id]


async def test_complete_with_review_reviews_counterpart(
    services, accepted_job, client_user, helper_user,
):
    await services.job_lifecycle.complete(
        accepted_job.id, client_user.id, rating=5, review="Fast and tidy work",
    )

    reviews = await services.review_ledger.list_for_user(helper_user.id, status=None)
    assert len(reviews) == 1
    assert reviews[0].reviewer_id == client_user.id
    assert reviews[0].rating == 5
    assert reviews[0].status == ReviewStatus.PENDING.value


async def test_complete_with_invalid_rating_leaves_job_untouched(
    services, accepted_job, client_user,
):
    with pytest.raises(ValidationError):
        await services.job_lifecycle.complete(
            accepted_job.id, client_user.id, rating=7, review="Great",
        )
    job = await services.job_lifecycle.get(accepted_job.id)
    assert job.status == JobStatus.ACCEPTED.value


async def test_complete_open_job_invalid_state(services, open_job, client_user):
    with pytest.raises(InvalidStateError):
        await services.job_lifecycle.complete(open_job.id, client_user.id)


# ─── Cancel ──────────────────────────────────────────────────────

async def test_creator_cancel_is_terminal(services, accepted_job, client_user, helper_user, sink):
    job = await services.job_lifecycle.cancel(
        accepted_job.id, client_user.id, "Found someone else",
    )

    assert job.status == JobStatus.CANCELLED.value
    assert job.assigned_to_id is None
    assert job.cancelled_by_id == client_user.id
    assert job.cancelled_assignee_id == helper_user.id
    assert job.cancellation_reason == "Found someone else"
    cancelled = sink.of_type(NotificationType.JOB_CANCELLED)
    assert [n.recipient_id for n in cancelled] == [helper_user.id]


async def test_assignee_cancel_reopens(services, accepted_job, client_user, helper_user, sink):
    job = await services.job_lifecycle.cancel(accepted_job.id, helper_user.id)

    assert job.status == JobStatus.OPEN.value
    assert job.assigned_to_id is None
    assert job.accepted_at is None
    reopened = sink.of_type(NotificationType.JOB_REOPENED)
    assert [n.recipient_id for n in reopened] == [client_user.id]


async def test_reopened_job_can_be_accepted_again(
    services, accepted_job, helper_user, second_helper,
):
    await services.job_lifecycle.cancel(accepted_job.id, helper_user.id)
    job = await services.job_lifecycle.accept(accepted_job.id, second_helper.id)
    assert job.assigned_to_id == second_helper.id


async def test_cancelled_job_cannot_be_cancelled_again(services, open_job, client_user):
    await services.job_lifecycle.cancel(open_job.id, client_user.id)
    with pytest.raises(InvalidStateError):
        await services.job_lifecycle.cancel(open_job.id, client_user.id)


# ─── Edit / reopen / delete ──────────────────────────────────────

async def test_update_revalidates_merged_fields(services, open_job, client_user):
    job = await services.job_lifecycle.update(
        open_job.id, client_user.id, {"title": "Replace tap", "budget_max": 150},
    )
    assert job.title == "Replace tap"
    assert job.budget_max == 150

    with pytest.raises(ValidationError):
        await services.job_lifecycle.update(open_job.id, client_user.id, {"budget_max": 10})


async def test_update_rejects_status_field(services, open_job, client_user):
    with pytest.raises(ValidationError):
        await services.job_lifecycle.update(
            open_job.id, client_user.id, {"status": "completed"},
        )


async def test_update_by_helper_forbidden(services, accepted_job, helper_user):
    with pytest.raises(ForbiddenError):
        await services.job_lifecycle.update(
            accepted_job.id, helper_user.id, {"title": "Mine now"},
        )


async def test_reopen_clears_assignment(services, accepted_job, client_user, helper_user, sink):
    job = await services.job_lifecycle.reopen(accepted_job.id, client_user.id)

    assert job.status == JobStatus.OPEN.value
    assert job.assigned_to_id is None
    assert sink.of_type(NotificationType.JOB_REOPENED)[0].recipient_id == helper_user.id


async def test_delete_job(services, accepted_job, client_user, helper_user, sink, test_db):
    await services.job_lifecycle.delete(accepted_job.id, client_user.id)

    with pytest.raises(NotFoundError):
        await services.job_lifecycle.get(accepted_job.id)
    await test_db.refresh(client_user)
    assert client_user.jobs_posted == 0
    assert sink.of_type(NotificationType.JOB_CANCELLED)[0].recipient_id == helper_user.id


async def test_delete_completed_job_rejected(services, accepted_job, client_user):
    await services.job_lifecycle.complete(accepted_job.id, client_user.id)
    with pytest.raises(InvalidStateError):
        await services.job_lifecycle.delete(accepted_job.id, client_user.id)


# ─── Stats ───────────────────────────────────────────────────────

async def test_record_view(services, open_job):
    await services.job_lifecycle.record_view(open_job.id)
    await services.job_lifecycle.record_view(open_job.id)
    job = await services.job_lifecycle.get(open_job.id)
    assert job.views == 2


async def test_toggle_save_flips_membership(services, open_job, helper_user, second_helper):
    assert await services.job_lifecycle.toggle_save(open_job.id, helper_user.id) == (True, 1)
    assert await services.job_lifecycle.toggle_save(open_job.id, second_helper.id) == (True, 2)
    assert await services.job_lifecycle.toggle_save(open_job.id, helper_user.id) == (False, 1)

    job = await services.job_lifecycle.get(open_job.id)
    assert job.saved_count == 1
