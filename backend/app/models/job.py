"""Job ORM: a posted task and its saved-by membership table.

Invariants:
    - budget_min <= budget_max (CHECK constraint mirrors validate_budget)
    - assigned_to_id is non-null iff status in {accepted, in_progress, completed}
    - status/assigned_to_id are written only by JobLifecycle (try_assign or save)
    - (job_id, user_id) unique in job_saves; saved_count == row count per job

Design Decisions:
    - Saves as a membership table: toggling is one conditional insert/delete,
      so membership and count cannot drift
    - Cancellation metadata in flat columns; cancelled_assignee_id keeps the
      dropped assignment of a creator-cancelled job
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, Date, DateTime, Float, ForeignKey, Index,
    Integer, JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Job(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        CheckConstraint("budget_min <= budget_max", name="ck_jobs_budget_order"),
        Index("ix_jobs_status_location", "status", "latitude", "longitude"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    creator_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    assigned_to_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True,
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")
    payment_status: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_urgent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    budget_min: Mapped[int] = mapped_column(Integer, nullable=False)
    budget_max: Mapped[int] = mapped_column(Integer, nullable=False)
    budget_negotiable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    max_distance_km: Mapped[int] = mapped_column(Integer, nullable=False, default=25)

    preferred_date: Mapped[date] = mapped_column(Date, nullable=False)
    preferred_time_start: Mapped[str] = mapped_column(String(5), nullable=False)
    preferred_time_end: Mapped[str] = mapped_column(String(5), nullable=False)
    requirements: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Stats
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    applications: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    saved_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Cancellation
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cancelled_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    cancelled_assignee_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    accepted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )


class JobSave(Base):
    """One row per (job, user) bookmark."""
    __tablename__ = "job_saves"
    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_job_saves_job_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
