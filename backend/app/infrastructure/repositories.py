"""SQL Repositories: SQLAlchemy implementations of the core collaborator Protocols.

Invariants:
    - Every write commits before returning; callers never hold a transaction open
      across a gateway call
    - try_assign and transition are single conditional UPDATEs checked by rowcount
    - Stat counters change only through `SET col = col + delta`
    - Reads use populate_existing so rows updated by conditional UPDATEs are fresh
    - SqlNotificationSink never raises to the caller and uses its own session

Design Decisions:
    - One AsyncSession shared by all repositories of a request (from get_db)
    - synchronize_session=False on bulk UPDATEs: identity-map copies are
      refreshed by the next populate_existing read
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import (
    AccountType,
    JobId,
    JobStatus,
    PaymentId,
    PaymentStatus,
    ReviewId,
    ReviewStatus,
    UserId,
    UserStat,
)
from app.core.errors import ConflictError, DatabaseError
from app.core.geo import BoundingBox
from app.core.notifications import Notification
from app.core.rating_summary import RatingSummary
from app.infrastructure.database import DatabaseSessionManager
from app.models.job import Job, JobSave
from app.models.notification import Notification as NotificationModel
from app.models.payment import Payment
from app.models.review import Review
from app.models.user import User

logger = logging.getLogger(__name__)


# ─── Users ───────────────────────────────────────────────────────

class SqlUserDirectory:

    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_by_id(self, user_id: UserId) -> User | None:
        result = await self._db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def find_by_geo_radius(
        self,
        box: BoundingBox,
        account_types: frozenset[AccountType],
        active_only: bool = True,
    ) -> list[User]:
        """Bounding-box prefilter only; exact distance is the matcher's job."""
        conditions = [
            User.latitude.is_not(None),
            User.longitude.is_not(None),
            User.latitude.between(box.min_latitude, box.max_latitude),
            User.account_type.in_([t.value for t in account_types]),
        ]
        # A box wrapping the antimeridian cannot be expressed as one BETWEEN
        if box.min_longitude >= -180 and box.max_longitude <= 180:
            conditions.append(
                User.longitude.between(box.min_longitude, box.max_longitude),
            )
        if active_only:
            conditions.append(User.is_active.is_(True))
        result = await self._db.execute(select(User).where(and_(*conditions)))
        return list(result.scalars().all())

    async def increment_stat(self, user_id: UserId, stat: UserStat, delta: int) -> None:
        column = getattr(User, UserStat(stat).value)
        await self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values({column: column + delta})
            .execution_options(synchronize_session=False),
        )
        await self._db.commit()

    async def update_rating(self, user_id: UserId, summary: RatingSummary) -> None:
        await self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                rating_average=summary.average,
                rating_total_reviews=summary.total_reviews,
                rating_distribution={str(k): v for k, v in summary.distribution.items()},
                rating_categories=dict(summary.categories),
            )
            .execution_options(synchronize_session=False),
        )
        await self._db.commit()


# ─── Jobs ────────────────────────────────────────────────────────

class SqlJobRepository:

    def __init__(self, db: AsyncSession):
        self._db = db

    async def add(self, job: Job) -> Job:
        self._db.add(job)
        await self._db.commit()
        return job

    async def get(self, job_id: JobId) -> Job | None:
        result = await self._db.execute(
            select(Job)
            .where(Job.id == job_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def save(self, job: Job) -> None:
        self._db.add(job)
        await self._db.commit()

    async def try_assign(
        self, job_id: JobId, helper_id: UserId, accepted_at: datetime,
    ) -> bool:
        result = await self._db.execute(
            update(Job)
            .where(
                Job.id == job_id,
                Job.status == JobStatus.OPEN.value,
                Job.assigned_to_id.is_(None),
            )
            .values(
                status=JobStatus.ACCEPTED.value,
                assigned_to_id=helper_id,
                accepted_at=accepted_at,
                updated_at=accepted_at,
            )
            .execution_options(synchronize_session=False),
        )
        await self._db.commit()
        return result.rowcount == 1

    async def delete(self, job_id: JobId) -> None:
        await self._db.execute(delete(JobSave).where(JobSave.job_id == job_id))
        await self._db.execute(delete(Job).where(Job.id == job_id))
        await self._db.commit()

    async def increment_views(self, job_id: JobId) -> None:
        await self._db.execute(
            update(Job)
            .where(Job.id == job_id)
            .values(views=Job.views + 1)
            .execution_options(synchronize_session=False),
        )
        await self._db.commit()

    async def toggle_saved_by(self, job_id: JobId, user_id: UserId) -> tuple[bool, int]:
        """Flip membership and adjust saved_count in one transaction."""
        removed = await self._db.execute(
            delete(JobSave).where(JobSave.job_id == job_id, JobSave.user_id == user_id),
        )
        is_saved = removed.rowcount == 0
        if is_saved:
            self._db.add(JobSave(job_id=job_id, user_id=user_id))
        await self._db.execute(
            update(Job)
            .where(Job.id == job_id)
            .values(saved_count=Job.saved_count + (1 if is_saved else -1))
            .execution_options(synchronize_session=False),
        )
        try:
            await self._db.commit()
        except IntegrityError:
            # Concurrent save of the same (job, user) already won
            await self._db.rollback()
            raise ConflictError("Job save already in progress for this user")
        count = await self._db.scalar(
            select(func.count()).select_from(JobSave).where(JobSave.job_id == job_id),
        )
        return is_saved, count or 0


# ─── Payments ────────────────────────────────────────────────────

class SqlPaymentRepository:

    def __init__(self, db: AsyncSession):
        self._db = db

    async def add(self, payment: Payment) -> Payment:
        self._db.add(payment)
        try:
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            raise ConflictError("A payment for this gateway intent already exists")
        return payment

    async def get(self, payment_id: PaymentId) -> Payment | None:
        result = await self._db.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def save(self, payment: Payment) -> None:
        self._db.add(payment)
        await self._db.commit()

    async def transition(
        self, payment_id: PaymentId, from_status: PaymentStatus, to_status: PaymentStatus,
    ) -> bool:
        result = await self._db.execute(
            update(Payment)
            .where(
                Payment.id == payment_id,
                Payment.status == PaymentStatus(from_status).value,
            )
            .values(status=PaymentStatus(to_status).value)
            .execution_options(synchronize_session=False),
        )
        await self._db.commit()
        return result.rowcount == 1

    async def find_active_for_job(self, job_id: JobId) -> Payment | None:
        result = await self._db.execute(
            select(Payment)
            .where(
                Payment.job_id == job_id,
                Payment.status != PaymentStatus.FAILED.value,
            )
            .order_by(Payment.created_at.desc())
            .limit(1),
        )
        return result.scalar_one_or_none()

    async def void_pending_for_job(self, job_id: JobId) -> int:
        """Fail every still-pending intent of the job; returns how many were voided."""
        result = await self._db.execute(
            update(Payment)
            .where(
                Payment.job_id == job_id,
                Payment.status == PaymentStatus.PENDING.value,
            )
            .values(status=PaymentStatus.FAILED.value)
            .execution_options(synchronize_session=False),
        )
        await self._db.commit()
        return result.rowcount

    async def list_for_user(
        self, user_id: UserId, status: PaymentStatus | None = None,
        limit: int = 10, offset: int = 0,
    ) -> list[Payment]:
        query = select(Payment).where(
            or_(Payment.client_id == user_id, Payment.helper_id == user_id),
        )
        if status is not None:
            query = query.where(Payment.status == PaymentStatus(status).value)
        result = await self._db.execute(
            query.order_by(Payment.created_at.desc()).limit(limit).offset(offset),
        )
        return list(result.scalars().all())


# ─── Reviews ─────────────────────────────────────────────────────

class SqlReviewRepository:

    def __init__(self, db: AsyncSession):
        self._db = db

    async def add(self, review: Review) -> Review:
        self._db.add(review)
        try:
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            raise ConflictError("You have already reviewed this job")
        return review

    async def get(self, review_id: ReviewId) -> Review | None:
        result = await self._db.execute(
            select(Review)
            .where(Review.id == review_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def save(self, review: Review) -> None:
        self._db.add(review)
        await self._db.commit()

    async def delete(self, review_id: ReviewId) -> None:
        await self._db.execute(delete(Review).where(Review.id == review_id))
        await self._db.commit()

    async def find_by_reviewer_and_job(
        self, reviewer_id: UserId, job_id: JobId,
    ) -> Review | None:
        result = await self._db.execute(
            select(Review).where(
                Review.reviewer_id == reviewer_id, Review.job_id == job_id,
            ),
        )
        return result.scalar_one_or_none()

    async def list_approved_for_reviewee(self, reviewee_id: UserId) -> list[Review]:
        result = await self._db.execute(
            select(Review).where(
                Review.reviewee_id == reviewee_id,
                Review.status == ReviewStatus.APPROVED.value,
            ),
        )
        return list(result.scalars().all())

    async def list_for_reviewee(
        self, reviewee_id: UserId, status: ReviewStatus | None = ReviewStatus.APPROVED,
        limit: int = 10, offset: int = 0,
    ) -> list[Review]:
        query = select(Review).where(Review.reviewee_id == reviewee_id)
        if status is not None:
            query = query.where(Review.status == ReviewStatus(status).value)
        result = await self._db.execute(
            query.order_by(Review.created_at.desc()).limit(limit).offset(offset),
        )
        return list(result.scalars().all())

    async def list_for_job(
        self, job_id: JobId, limit: int = 10, offset: int = 0,
    ) -> list[Review]:
        result = await self._db.execute(
            select(Review)
            .where(
                Review.job_id == job_id,
                Review.status == ReviewStatus.APPROVED.value,
            )
            .order_by(Review.created_at.desc())
            .limit(limit)
            .offset(offset),
        )
        return list(result.scalars().all())


# ─── Notifications ───────────────────────────────────────────────

class SqlNotificationSink:
    """Persists notifications as in-app rows. Failures are logged, never raised.

    Writes through its own session so a failed insert never rolls back
    (and expires) the request session's rows.
    """

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    async def notify(self, notification: Notification) -> None:
        await self.notify_many([notification])

    async def notify_many(self, notifications: list[Notification]) -> None:
        if not notifications:
            return
        try:
            async with self._manager.session() as db:
                db.add_all([_to_row(n) for n in notifications])
                await db.commit()
        except (DatabaseError, SQLAlchemyError):
            logger.warning(
                "Notification delivery failed",
                extra={"recipients": len(notifications)},
                exc_info=True,
            )


def _to_row(notification: Notification) -> NotificationModel:
    return NotificationModel(
        recipient_id=notification.recipient_id,
        type=notification.type.value,
        title=notification.title,
        message=notification.message,
        payload=dict(notification.payload),
        priority=notification.priority.value,
        created_at=datetime.now(timezone.utc),
    )
