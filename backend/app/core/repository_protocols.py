"""Boundary Protocols: contracts between the marketplace core and its collaborators.

Invariants:
    - Core NEVER imports from the shell; dependency arrows point inward only
    - Every IO operation the services perform goes through one of these Protocols
    - JobRepository.try_assign is a single conditional write on (status=open, assigned_to=null)
    - PaymentRepository.transition is a single conditional write on the current status
    - NotificationSink.notify never raises to the caller

Design Decisions:
    - Protocol over ABC: structural subtyping; the SQL implementations and the
      test fakes share no base class
    - *Like record Protocols give the rule functions real attribute types without
      importing ORM models into core/
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from app.core.domain_types import (
    AccountType,
    Currency,
    JobId,
    PaymentId,
    PaymentStatus,
    ReviewId,
    ReviewStatus,
    UserId,
    UserStat,
)

if TYPE_CHECKING:
    from app.core.geo import BoundingBox
    from app.core.notifications import Notification
    from app.core.rating_summary import RatingSummary


# ─── Records ─────────────────────────────────────────────────────

class UserLike(Protocol):
    id: UUID
    first_name: str
    last_name: str
    account_type: str
    is_active: bool
    is_admin: bool
    is_moderator: bool
    latitude: float | None
    longitude: float | None
    stripe_account_id: str | None


class JobLike(Protocol):
    id: UUID
    creator_id: UUID
    assigned_to_id: UUID | None
    title: str
    category: str
    status: str
    latitude: float
    longitude: float


class PaymentLike(Protocol):
    id: UUID
    job_id: UUID
    client_id: UUID
    helper_id: UUID
    amount: int
    currency: str
    platform_fee: int
    helper_amount: int
    status: str
    gateway_intent_id: str
    escrow_release_date: datetime | None
    dispute_is_disputed: bool
    refunded_amount: int


class ReviewLike(Protocol):
    id: UUID
    reviewer_id: UUID
    reviewee_id: UUID
    job_id: UUID
    rating: int
    categories: dict
    status: str
    helpful_by: list
    flags: list


# ─── Gateway values ──────────────────────────────────────────────

@dataclass(frozen=True)
class GatewayIntent:
    id: str
    client_secret: str


# ─── Collaborators ───────────────────────────────────────────────

class UserDirectory(Protocol):
    async def find_by_id(self, user_id: UserId) -> UserLike | None: ...
    async def find_by_geo_radius(
        self,
        box: "BoundingBox",
        account_types: frozenset[AccountType],
        active_only: bool = True,
    ) -> list[UserLike]: ...
    async def increment_stat(self, user_id: UserId, stat: UserStat, delta: int) -> None: ...
    async def update_rating(self, user_id: UserId, summary: "RatingSummary") -> None: ...


class JobRepository(Protocol):
    async def add(self, job: JobLike) -> JobLike: ...
    async def get(self, job_id: JobId) -> JobLike | None: ...
    async def save(self, job: JobLike) -> None: ...
    async def try_assign(
        self, job_id: JobId, helper_id: UserId, accepted_at: datetime,
    ) -> bool: ...
    async def delete(self, job_id: JobId) -> None: ...
    async def increment_views(self, job_id: JobId) -> None: ...
    async def toggle_saved_by(self, job_id: JobId, user_id: UserId) -> tuple[bool, int]: ...


class PaymentRepository(Protocol):
    async def add(self, payment: PaymentLike) -> PaymentLike: ...
    async def get(self, payment_id: PaymentId) -> PaymentLike | None: ...
    async def save(self, payment: PaymentLike) -> None: ...
    async def transition(
        self, payment_id: PaymentId, from_status: PaymentStatus, to_status: PaymentStatus,
    ) -> bool: ...
    async def find_active_for_job(self, job_id: JobId) -> PaymentLike | None: ...
    async def void_pending_for_job(self, job_id: JobId) -> int: ...
    async def list_for_user(
        self, user_id: UserId, status: PaymentStatus | None = None,
        limit: int = 10, offset: int = 0,
    ) -> list[PaymentLike]: ...


class ReviewRepository(Protocol):
    async def add(self, review: ReviewLike) -> ReviewLike: ...
    async def get(self, review_id: ReviewId) -> ReviewLike | None: ...
    async def save(self, review: ReviewLike) -> None: ...
    async def delete(self, review_id: ReviewId) -> None: ...
    async def find_by_reviewer_and_job(
        self, reviewer_id: UserId, job_id: JobId,
    ) -> ReviewLike | None: ...
    async def list_approved_for_reviewee(self, reviewee_id: UserId) -> list[ReviewLike]: ...
    async def list_for_reviewee(
        self, reviewee_id: UserId, status: ReviewStatus | None = ReviewStatus.APPROVED,
        limit: int = 10, offset: int = 0,
    ) -> list[ReviewLike]: ...
    async def list_for_job(
        self, job_id: JobId, limit: int = 10, offset: int = 0,
    ) -> list[ReviewLike]: ...


class NotificationSink(Protocol):
    """Fire-and-forget delivery; failures are logged by the implementation."""
    async def notify(self, notification: "Notification") -> None: ...
    async def notify_many(self, notifications: list["Notification"]) -> None: ...


class PaymentGateway(Protocol):
    """External payment processor. Every call is a non-idempotent network operation."""
    async def create_intent(
        self, amount: int, currency: Currency, metadata: dict[str, str],
    ) -> GatewayIntent: ...
    async def retrieve_intent(self, intent_id: str) -> str: ...
    async def transfer(
        self, amount: int, currency: Currency, destination_account: str,
        metadata: dict[str, str],
    ) -> str: ...
    async def refund(self, intent_id: str, amount: int | None = None) -> str: ...
