"""User ORM: marketplace participant with location, payout account, stats and rating.

Invariants:
    - Stats counters are only changed through atomic increments (UserDirectory.increment_stat)
    - rating_* columns are written only by RatingAggregator
    - latitude/longitude are both set or both null

Design Decisions:
    - Flat stat/rating columns instead of a JSON blob: increments are single
      `UPDATE ... SET col = col + delta` statements
    - Identity is verified upstream; external_id links to the identity provider
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


def _empty_distribution() -> dict:
    return {str(r): 0 for r in range(1, 6)}


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_location", "latitude", "longitude"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    external_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True, unique=True,
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    account_type: Mapped[str] = mapped_column(
        String(10), nullable=False, default="client",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_moderator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Payouts
    stripe_account_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payouts_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Stats
    jobs_posted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    jobs_accepted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    jobs_assigned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    jobs_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_earnings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Rating (derived)
    rating_average: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating_distribution: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=_empty_distribution,
    )
    rating_categories: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
