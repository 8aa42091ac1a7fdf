"""JobLifecycle: the Job state machine and the side effects of each transition.

Invariants:
    - Sole writer of Job.status / Job.assigned_to_id (EscrowPaymentFlow goes
      through mark_paid / mark_released)
    - accept is a single conditional write on (status=open, assigned_to=null);
      concurrent losers get NotAvailableError
    - assigned_to_id is set iff status in {accepted, in_progress, completed}
    - User stats change exactly once per triggering transition
    - Notification and nearby fan-out failures are logged, never raised
    - Leaving accepted (cancel, reopen, complete) fails the job's pending payment
      intents, so the next assignee can be paid

Design Decisions:
    - Impureim sandwich per operation: load -> pure check (core/) -> persist -> side effects
    - Cancellation outcome is decided by plan_cancellation from the actor's role only
"""

import logging
from datetime import datetime, timezone

from app.core.domain_types import (
    ActorRole,
    JobId,
    JobPaymentStatus,
    JobStatus,
    UserId,
    UserStat,
)
from app.core.enforce_job_transitions import (
    JobDraft,
    check_can_accept,
    check_can_complete,
    check_can_delete,
    check_can_mark_paid,
    check_can_mark_released,
    check_can_reopen,
    check_can_update,
    other_party,
    plan_cancellation,
    validate_job_draft,
)
from app.core.enforce_reviews import CONTENT_MAX_LENGTH, validate_score, validate_text
from app.core.errors import (
    ErrorContext,
    NotAvailableError,
    NotFoundError,
    ValidationError,
)
from app.core.notifications import (
    job_acceptance_withdrawn,
    job_accepted,
    job_cancelled,
    job_completed,
    job_deleted,
    job_reopened,
)
from app.core.repository_protocols import (
    JobRepository,
    NotificationSink,
    PaymentRepository,
    UserDirectory,
)
from app.models.job import Job
from app.services.nearby_matcher import NearbyMatcher
from app.services.review_ledger import ReviewLedger

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({
    "title", "description", "category",
    "budget_min", "budget_max", "budget_negotiable",
    "latitude", "longitude", "address", "max_distance_km",
    "preferred_date", "preferred_time_start", "preferred_time_end",
    "requirements", "is_urgent",
})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _apply_draft(job: Job, draft: JobDraft) -> None:
    job.title = draft.title
    job.description = draft.description
    job.category = draft.category.value
    job.budget_min = draft.budget.min
    job.budget_max = draft.budget.max
    job.budget_negotiable = draft.budget.negotiable
    job.latitude = draft.location.latitude
    job.longitude = draft.location.longitude
    job.address = draft.address
    job.max_distance_km = draft.max_distance_km
    job.preferred_date = draft.preferred_date
    job.preferred_time_start = draft.preferred_time_start
    job.preferred_time_end = draft.preferred_time_end
    job.requirements = draft.requirements.to_dict()
    job.is_urgent = draft.is_urgent


def _draft_fields(job: Job) -> dict:
    return {
        "title": job.title,
        "description": job.description,
        "category": job.category,
        "budget_min": job.budget_min,
        "budget_max": job.budget_max,
        "budget_negotiable": job.budget_negotiable,
        "latitude": job.latitude,
        "longitude": job.longitude,
        "address": job.address,
        "max_distance_km": job.max_distance_km,
        "preferred_date": job.preferred_date,
        "preferred_time_start": job.preferred_time_start,
        "preferred_time_end": job.preferred_time_end,
        "requirements": job.requirements,
        "is_urgent": job.is_urgent,
    }


class JobLifecycle:

    def __init__(
        self,
        jobs: JobRepository,
        users: UserDirectory,
        notifications: NotificationSink,
        matcher: NearbyMatcher | None = None,
        review_ledger: ReviewLedger | None = None,
        payments: PaymentRepository | None = None,
        default_max_distance_km: int = 25,
    ):
        self.jobs = jobs
        self.users = users
        self.notifications = notifications
        self.matcher = matcher
        self.review_ledger = review_ledger
        self.payments = payments
        self.default_max_distance_km = default_max_distance_km

    async def get(self, job_id: JobId) -> Job:
        job = await self.jobs.get(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return job

    async def _require_user(self, user_id: UserId):
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _count_completion(self, job: Job) -> None:
        await self.users.increment_stat(job.creator_id, UserStat.JOBS_COMPLETED, 1)
        if job.assigned_to_id is not None:
            await self.users.increment_stat(job.assigned_to_id, UserStat.JOBS_COMPLETED, 1)

    async def _void_pending_payments(self, job: Job) -> None:
        if self.payments is None:
            return
        voided = await self.payments.void_pending_for_job(job.id)
        if voided:
            logger.warning(
                f"Voided {voided} pending payment intent(s)",
                extra={"job_id": str(job.id), "error_code": "PAYMENT_VOIDED"},
            )

    # ─── Create / edit ───────────────────────────────────────────

    async def create(self, creator_id: UserId, fields: dict) -> Job:
        draft = validate_job_draft(
            **fields, default_max_distance_km=self.default_max_distance_km,
        )
        await self._require_user(creator_id)

        job = Job(
            creator_id=creator_id,
            status=JobStatus.OPEN.value,
            views=0,
            applications=0,
            saved_count=0,
        )
        _apply_draft(job, draft)
        job = await self.jobs.add(job)
        await self.users.increment_stat(creator_id, UserStat.JOBS_POSTED, 1)
        logger.info(
            "Job created", extra={"job_id": str(job.id), "user_id": str(creator_id)},
        )

        if self.matcher is not None:
            await self.matcher.notify_nearby_helpers(job)
        return job

    async def update(self, job_id: JobId, actor_id: UserId, fields: dict) -> Job:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be edited: {sorted(unknown)}", field=sorted(unknown)[0],
            )
        job = await self.get(job_id)
        check_can_update(job, actor_id)

        merged = {**_draft_fields(job), **fields}
        draft = validate_job_draft(
            **merged, default_max_distance_km=self.default_max_distance_km,
        )
        _apply_draft(job, draft)
        await self.jobs.save(job)
        logger.info("Job updated", extra={"job_id": str(job_id)})
        return job

    # ─── Transitions ─────────────────────────────────────────────

    async def accept(self, job_id: JobId, helper_id: UserId) -> Job:
        job = await self.get(job_id)
        check_can_accept(job, helper_id)
        helper = await self._require_user(helper_id)

        if not await self.jobs.try_assign(job_id, helper_id, _now()):
            logger.info(
                "Accept lost race", extra={"job_id": str(job_id), "user_id": str(helper_id)},
            )
            raise NotAvailableError(
                "This job is no longer available for acceptance",
                ErrorContext(job_id=str(job_id), user_id=str(helper_id)),
            )

        job = await self.get(job_id)
        await self.users.increment_stat(helper_id, UserStat.JOBS_ACCEPTED, 1)
        await self.users.increment_stat(job.creator_id, UserStat.JOBS_ASSIGNED, 1)
        logger.info(
            "Job accepted", extra={"job_id": str(job_id), "user_id": str(helper_id)},
        )

        await self.notifications.notify(
            job_accepted(job, f"{helper.first_name} {helper.last_name}"),
        )
        return job

    async def complete(
        self,
        job_id: JobId,
        actor_id: UserId,
        rating: int | None = None,
        review: str | None = None,
    ) -> Job:
        """Complete the job; rating + review, when both given, review the other party."""
        with_review = rating is not None and bool(review)
        if with_review:
            validate_score(rating, "rating")
            review = validate_text(review, "review", CONTENT_MAX_LENGTH)

        job = await self.get(job_id)
        check_can_complete(job, actor_id)
        was_accepted = JobStatus(job.status) == JobStatus.ACCEPTED

        job.status = JobStatus.COMPLETED.value
        job.completed_at = _now()
        await self.jobs.save(job)
        await self._count_completion(job)
        if was_accepted:
            await self._void_pending_payments(job)
        logger.info(
            "Job completed", extra={"job_id": str(job_id), "user_id": str(actor_id)},
        )

        counterpart = other_party(job, actor_id)
        if with_review and counterpart is not None and self.review_ledger is not None:
            await self.review_ledger.create(
                job_id=job.id,
                reviewer_id=actor_id,
                reviewee_id=counterpart,
                rating=rating,
                title=f"Review for {job.title}"[:100],
                content=review,
            )
        if counterpart is not None:
            await self.notifications.notify(job_completed(counterpart, job))
        return job

    async def cancel(
        self, job_id: JobId, actor_id: UserId, reason: str | None = None,
    ) -> Job:
        job = await self.get(job_id)
        plan = plan_cancellation(job, actor_id)
        was_accepted = JobStatus(job.status) == JobStatus.ACCEPTED

        previous_assignee = job.assigned_to_id
        job.status = plan.next_status.value
        job.assigned_to_id = None
        job.cancellation_reason = reason
        job.cancelled_by_id = actor_id
        job.cancelled_at = _now()
        if plan.reopens:
            job.accepted_at = None
        else:
            job.cancelled_assignee_id = previous_assignee
        await self.jobs.save(job)
        if was_accepted:
            await self._void_pending_payments(job)
        logger.info(
            f"Job {'reopened by assignee' if plan.reopens else 'cancelled'}",
            extra={"job_id": str(job_id), "user_id": str(actor_id)},
        )

        if plan.role == ActorRole.ASSIGNEE:
            await self.notifications.notify(
                job_acceptance_withdrawn(job.creator_id, job, reason),
            )
        elif previous_assignee is not None:
            await self.notifications.notify(job_cancelled(previous_assignee, job, reason))
        return job

    async def reopen(self, job_id: JobId, creator_id: UserId) -> Job:
        job = await self.get(job_id)
        check_can_reopen(job, creator_id)

        previous_assignee = job.assigned_to_id
        job.status = JobStatus.OPEN.value
        job.assigned_to_id = None
        job.accepted_at = None
        await self.jobs.save(job)
        await self._void_pending_payments(job)
        logger.info("Job reopened", extra={"job_id": str(job_id)})

        if previous_assignee is not None:
            await self.notifications.notify(job_reopened(previous_assignee, job))
        return job

    async def delete(self, job_id: JobId, actor_id: UserId) -> None:
        job = await self.get(job_id)
        check_can_delete(job, actor_id)
        creator_id = job.creator_id
        notice = job_deleted(job.assigned_to_id, job) if job.assigned_to_id else None

        await self.jobs.delete(job_id)
        await self.users.increment_stat(creator_id, UserStat.JOBS_POSTED, -1)
        logger.info("Job deleted", extra={"job_id": str(job_id), "user_id": str(actor_id)})

        if notice is not None:
            await self.notifications.notify(notice)

    # ─── Payment-driven transitions ──────────────────────────────

    async def mark_paid(self, job_id: JobId) -> Job:
        """accepted -> in_progress once the client's payment is captured."""
        job = await self.get(job_id)
        check_can_mark_paid(job)
        job.status = JobStatus.IN_PROGRESS.value
        job.payment_status = JobPaymentStatus.PAID.value
        await self.jobs.save(job)
        logger.info("Job paid, work in progress", extra={"job_id": str(job_id)})
        return job

    async def mark_released(self, job_id: JobId) -> Job:
        """Escrow released: completes an in-progress job, or just flags a completed one."""
        job = await self.get(job_id)
        completes = check_can_mark_released(job)
        if completes:
            job.status = JobStatus.COMPLETED.value
            job.completed_at = _now()
        job.payment_status = JobPaymentStatus.RELEASED.value
        await self.jobs.save(job)
        if completes:
            await self._count_completion(job)
        logger.info("Job escrow released", extra={"job_id": str(job_id)})
        return job

    # ─── Stats ───────────────────────────────────────────────────

    async def record_view(self, job_id: JobId) -> None:
        await self.get(job_id)
        await self.jobs.increment_views(job_id)

    async def toggle_save(self, job_id: JobId, user_id: UserId) -> tuple[bool, int]:
        """Return (is_saved, saved_count) after the flip."""
        await self.get(job_id)
        return await self.jobs.toggle_saved_by(job_id, user_id)
