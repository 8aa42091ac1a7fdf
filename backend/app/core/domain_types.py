"""Domain Types: identity wrappers and closed value sets for the marketplace.

Invariants:
    - UserId, JobId, PaymentId, ReviewId wrap UUIDs; never use bare UUID in rule code
    - Money is always an integer amount of minor currency units (cents)
    - Every valid state is an Enum member; no raw string matching in core/

Design Decisions:
    - str Enums: values are stored in String columns and serialized to JSON as-is
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
JobId = NewType("JobId", UUID)
PaymentId = NewType("PaymentId", UUID)
ReviewId = NewType("ReviewId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

MinorUnits = NewType("MinorUnits", int)     # e.g. cents, always >= 0
StarRating = NewType("StarRating", int)     # 1-5


# ─── Jobs ────────────────────────────────────────────────────────

class JobStatus(str, Enum):
    """Job lifecycle states. COMPLETED and CANCELLED are terminal."""
    OPEN = "open"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ASSIGNED_STATUSES = frozenset({
    JobStatus.ACCEPTED, JobStatus.IN_PROGRESS, JobStatus.COMPLETED,
})


class JobPaymentStatus(str, Enum):
    PAID = "paid"
    RELEASED = "released"


class JobCategory(str, Enum):
    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    CARPENTRY = "carpentry"
    CLEANING = "cleaning"
    GARDENING = "gardening"
    PAINTING = "painting"
    MOVING = "moving"
    REPAIR = "repair"
    OTHER = "other"


class ExperienceLevel(str, Enum):
    ANY = "any"
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class ActorRole(str, Enum):
    """How the acting user relates to a job."""
    CREATOR = "creator"
    ASSIGNEE = "assignee"
    OUTSIDER = "outsider"


# ─── Users ───────────────────────────────────────────────────────

class AccountType(str, Enum):
    CLIENT = "client"
    HELPER = "helper"
    BOTH = "both"


HELPER_ACCOUNT_TYPES = frozenset({AccountType.HELPER, AccountType.BOTH})


class UserStat(str, Enum):
    """Counters on the User aggregate, each bumped once per triggering transition."""
    JOBS_POSTED = "jobs_posted"
    JOBS_ACCEPTED = "jobs_accepted"
    JOBS_ASSIGNED = "jobs_assigned"
    JOBS_COMPLETED = "jobs_completed"
    TOTAL_EARNINGS = "total_earnings"


# ─── Payments ────────────────────────────────────────────────────

class Currency(str, Enum):
    USD = "usd"
    EUR = "eur"
    GBP = "gbp"
    CAD = "cad"
    AUD = "aud"


class PaymentStatus(str, Enum):
    """Payment states. PROCESSING marks a gateway call in flight."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    DISPUTED = "disputed"


class DisputeReason(str, Enum):
    QUALITY_ISSUE = "quality_issue"
    NOT_COMPLETED = "not_completed"
    COMMUNICATION = "communication"
    OTHER = "other"


class DisputeResolution(str, Enum):
    REFUND_CLIENT = "refund_client"
    PAY_HELPER = "pay_helper"
    PARTIAL_REFUND = "partial_refund"


class ReleaseCondition(str, Enum):
    JOB_COMPLETED = "job_completed"
    CLIENT_APPROVAL = "client_approval"
    TIME_ELAPSED = "time_elapsed"


# ─── Reviews ─────────────────────────────────────────────────────

class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewCategory(str, Enum):
    """Per-category scores; each is 1-5 like the overall rating."""
    COMMUNICATION = "communication"
    QUALITY = "quality"
    TIMELINESS = "timeliness"
    PROFESSIONALISM = "professionalism"
    VALUE = "value"


class FlagReason(str, Enum):
    INAPPROPRIATE = "inappropriate"
    SPAM = "spam"
    FAKE = "fake"
    OTHER = "other"


# ─── Notifications ───────────────────────────────────────────────

class NotificationType(str, Enum):
    JOB_POSTED = "job_posted"
    JOB_ACCEPTED = "job_accepted"
    JOB_COMPLETED = "job_completed"
    JOB_CANCELLED = "job_cancelled"
    JOB_REOPENED = "job_reopened"
    REVIEW_RECEIVED = "review_received"
    REVIEW_MODERATED = "review_moderated"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_RELEASED = "payment_released"
    DISPUTE_OPENED = "dispute_opened"
    DISPUTE_RESOLVED = "dispute_resolved"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
