"""Initial schema: users, jobs, job_saves, payments, reviews, notifications.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(
        name, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("external_id", sa.String(128), nullable=True, unique=True),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("account_type", sa.String(10), nullable=False, server_default="client"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_moderator", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("stripe_account_id", sa.String(64), nullable=True),
        sa.Column("payouts_enabled", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("jobs_posted", sa.Integer, nullable=False, server_default="0"),
        sa.Column("jobs_accepted", sa.Integer, nullable=False, server_default="0"),
        sa.Column("jobs_assigned", sa.Integer, nullable=False, server_default="0"),
        sa.Column("jobs_completed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_earnings", sa.Integer, nullable=False, server_default="0"),
        sa.Column("rating_average", sa.Float, nullable=False, server_default="0"),
        sa.Column("rating_total_reviews", sa.Integer, nullable=False, server_default="0"),
        sa.Column("rating_distribution", sa.JSON, nullable=False),
        sa.Column("rating_categories", sa.JSON, nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_users_location", "users", ["latitude", "longitude"])

    op.create_table(
        "jobs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("creator_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assigned_to_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("payment_status", sa.String(10), nullable=True),
        sa.Column("is_urgent", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("budget_min", sa.Integer, nullable=False),
        sa.Column("budget_max", sa.Integer, nullable=False),
        sa.Column("budget_negotiable", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("address", sa.JSON, nullable=False),
        sa.Column("max_distance_km", sa.Integer, nullable=False, server_default="25"),
        sa.Column("preferred_date", sa.Date, nullable=False),
        sa.Column("preferred_time_start", sa.String(5), nullable=False),
        sa.Column("preferred_time_end", sa.String(5), nullable=False),
        sa.Column("requirements", sa.JSON, nullable=False),
        sa.Column("views", sa.Integer, nullable=False, server_default="0"),
        sa.Column("applications", sa.Integer, nullable=False, server_default="0"),
        sa.Column("saved_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("cancelled_by_id", UUID(as_uuid=True), nullable=True),
        _timestamp("cancelled_at", nullable=True),
        sa.Column("cancelled_assignee_id", UUID(as_uuid=True), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("accepted_at", nullable=True),
        _timestamp("completed_at", nullable=True),
        sa.CheckConstraint("budget_min <= budget_max", name="ck_jobs_budget_order"),
    )
    op.create_index("ix_jobs_creator_id", "jobs", ["creator_id"])
    op.create_index("ix_jobs_assigned_to_id", "jobs", ["assigned_to_id"])
    op.create_index("ix_jobs_status_location", "jobs", ["status", "latitude", "longitude"])

    op.create_table(
        "job_saves",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "job_id", UUID(as_uuid=True),
            sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        _timestamp("created_at"),
        sa.UniqueConstraint("job_id", "user_id", name="uq_job_saves_job_user"),
    )
    op.create_index("ix_job_saves_job_id", "job_saves", ["job_id"])

    op.create_table(
        "payments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("job_id", UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", UUID(as_uuid=True), nullable=False),
        sa.Column("helper_id", UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="usd"),
        sa.Column("platform_fee", sa.Integer, nullable=False),
        sa.Column("helper_amount", sa.Integer, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("gateway_intent_id", sa.String(255), nullable=False, unique=True),
        sa.Column("gateway_transfer_id", sa.String(255), nullable=True),
        sa.Column("description", sa.String(255), nullable=True),
        _timestamp("escrow_release_date", nullable=True),
        sa.Column("escrow_auto_release", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("escrow_release_conditions", sa.JSON, nullable=False),
        sa.Column("dispute_is_disputed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("dispute_reason", sa.String(20), nullable=True),
        sa.Column("dispute_description", sa.Text, nullable=True),
        sa.Column("dispute_resolution", sa.String(20), nullable=True),
        sa.Column("dispute_resolved_by_id", UUID(as_uuid=True), nullable=True),
        _timestamp("dispute_resolved_at", nullable=True),
        sa.Column("refunded_amount", sa.Integer, nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("completed_at", nullable=True),
        _timestamp("refunded_at", nullable=True),
        sa.CheckConstraint("amount = platform_fee + helper_amount", name="ck_payments_split"),
    )
    op.create_index("ix_payments_job_id", "payments", ["job_id"])
    op.create_index("ix_payments_client_id", "payments", ["client_id"])
    op.create_index("ix_payments_helper_id", "payments", ["helper_id"])

    op.create_table(
        "reviews",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("reviewer_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reviewee_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("job_id", UUID(as_uuid=True), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("categories", sa.JSON, nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="pending"),
        sa.Column("helpful_by", sa.JSON, nullable=False),
        sa.Column("helpful_votes_up", sa.Integer, nullable=False, server_default="0"),
        sa.Column("flags", sa.JSON, nullable=False),
        sa.Column("response_content", sa.Text, nullable=True),
        _timestamp("response_created_at", nullable=True),
        sa.Column("moderated_by_id", UUID(as_uuid=True), nullable=True),
        _timestamp("moderated_at", nullable=True),
        sa.Column("moderation_reason", sa.String(500), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("reviewer_id", "job_id", name="uq_reviews_reviewer_job"),
        sa.CheckConstraint("reviewer_id <> reviewee_id", name="ck_reviews_not_self"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_job_id", "reviews", ["job_id"])
    op.create_index("ix_reviews_reviewee_status", "reviews", ["reviewee_id", "status"])

    op.create_table(
        "notifications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "recipient_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        _timestamp("created_at"),
    )
    op.create_index(
        "ix_notifications_recipient_read", "notifications", ["recipient_id", "is_read"],
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("reviews")
    op.drop_table("payments")
    op.drop_table("job_saves")
    op.drop_table("jobs")
    op.drop_table("users")
