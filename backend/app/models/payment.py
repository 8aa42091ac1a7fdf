"""Payment ORM: escrowed payment for one job. Financial record, never deleted.

Invariants:
    - amount == platform_fee + helper_amount
    - gateway_intent_id is unique (one local payment per gateway intent)
    - status changes for gateway-backed steps go through a conditional UPDATE
      (PaymentRepository.transition) before the gateway is called

Design Decisions:
    - job_id/client_id/helper_id are plain indexed ids: payments outlive jobs
    - Escrow and dispute sub-records flattened into prefixed columns
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, Integer, JSON, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


def _default_release_conditions() -> list:
    return ["job_completed"]


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount = platform_fee + helper_amount", name="ck_payments_split"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    helper_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    platform_fee: Mapped[int] = mapped_column(Integer, nullable=False)
    helper_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    gateway_intent_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True,
    )
    gateway_transfer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Escrow
    escrow_release_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    escrow_auto_release: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    escrow_release_conditions: Mapped[list] = mapped_column(
        JSON, nullable=False, default=_default_release_conditions,
    )

    # Dispute
    dispute_is_disputed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dispute_reason: Mapped[str | None] = mapped_column(String(20), nullable=True)
    dispute_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    dispute_resolution: Mapped[str | None] = mapped_column(String(20), nullable=True)
    dispute_resolved_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    dispute_resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    refunded_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    refunded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
