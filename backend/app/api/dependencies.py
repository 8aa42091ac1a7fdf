"""API Dependencies: acting user resolution and per-request service wiring.

Invariants:
    - The acting user id comes from the X-User-Id header (verified upstream)
    - Every service in a request shares one AsyncSession (from get_db)
    - The payment gateway is a single process-wide instance, overridable in tests

Design Decisions:
    - Plain constructor injection; FastAPI Depends only at this edge
    - db_manager read through the module at call time: it is set by lifespan
"""

from dataclasses import dataclass
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

import app.infrastructure.database as database
from app.config import get_settings
from app.core.domain_types import UserId
from app.core.repository_protocols import NotificationSink, PaymentGateway
from app.infrastructure.database import get_db
from app.infrastructure.repositories import (
    SqlJobRepository,
    SqlNotificationSink,
    SqlPaymentRepository,
    SqlReviewRepository,
    SqlUserDirectory,
)
from app.infrastructure.stripe_gateway import StripePaymentGateway
from app.services.escrow_payment import EscrowPaymentFlow
from app.services.job_lifecycle import JobLifecycle
from app.services.nearby_matcher import NearbyMatcher
from app.services.rating_aggregator import RatingAggregator
from app.services.review_ledger import ReviewLedger


async def get_actor_id(x_user_id: UUID = Header(alias="X-User-Id")) -> UserId:
    return UserId(x_user_id)


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    settings = get_settings()
    return StripePaymentGateway(settings.stripe_secret_key)


def get_notification_sink() -> NotificationSink:
    if not database.db_manager:
        raise RuntimeError("Database not initialized")
    return SqlNotificationSink(database.db_manager)


@dataclass
class Services:
    users: SqlUserDirectory
    job_lifecycle: JobLifecycle
    review_ledger: ReviewLedger
    escrow: EscrowPaymentFlow


def build_services(
    db: AsyncSession, notifications: NotificationSink, gateway: PaymentGateway,
) -> Services:
    settings = get_settings()
    users = SqlUserDirectory(db)
    jobs = SqlJobRepository(db)
    reviews = SqlReviewRepository(db)
    payments = SqlPaymentRepository(db)

    review_ledger = ReviewLedger(
        reviews, jobs, users, RatingAggregator(reviews, users), notifications,
        require_moderation=settings.reviews_require_moderation,
    )
    matcher = NearbyMatcher(
        users, notifications,
        radius_km=settings.nearby_radius_km,
        max_results=settings.nearby_max_results,
    )
    job_lifecycle = JobLifecycle(
        jobs, users, notifications,
        matcher=matcher,
        review_ledger=review_ledger,
        payments=payments,
        default_max_distance_km=settings.default_job_max_distance_km,
    )
    escrow = EscrowPaymentFlow(
        payments, jobs, users, gateway, job_lifecycle, notifications,
        fee_rate=settings.platform_fee_rate,
    )
    return Services(users, job_lifecycle, review_ledger, escrow)


def get_services(
    db: AsyncSession = Depends(get_db),
    notifications: NotificationSink = Depends(get_notification_sink),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> Services:
    return build_services(db, notifications, gateway)
