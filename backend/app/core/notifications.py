"""Notification Variants: one tagged shape for job, review, payment and system notices.

Invariants:
    - Every notification has a type, a recipient, a title (<= 100 chars) and a message
    - Related entity ids live in `payload` as strings, keyed job_id / review_id / payment_id
    - Builders are pure; delivery belongs to NotificationSink
"""

from dataclasses import dataclass, field

from app.core.domain_types import NotificationPriority, NotificationType, UserId

TITLE_MAX_LENGTH = 100


@dataclass(frozen=True)
class Notification:
    type: NotificationType
    recipient_id: UserId
    title: str
    message: str
    payload: dict[str, str] = field(default_factory=dict)
    priority: NotificationPriority = NotificationPriority.MEDIUM

    def __post_init__(self):
        if len(self.title) > TITLE_MAX_LENGTH:
            object.__setattr__(self, "title", self.title[:TITLE_MAX_LENGTH])


def _with_reason(message: str, reason: str | None) -> str:
    return f"{message} Reason: {reason}" if reason else message


# ─── Jobs ────────────────────────────────────────────────────────

def job_posted(recipient_id: UserId, job) -> Notification:
    return Notification(
        NotificationType.JOB_POSTED, recipient_id, "New Job Available",
        f'A new {job.category} job has been posted near you: "{job.title}"',
        {"job_id": str(job.id)},
    )


def job_accepted(job, helper_name: str) -> Notification:
    return Notification(
        NotificationType.JOB_ACCEPTED, job.creator_id, "Job Accepted",
        f'Your job "{job.title}" has been accepted by {helper_name}.',
        {"job_id": str(job.id)}, NotificationPriority.HIGH,
    )


def job_completed(recipient_id: UserId, job) -> Notification:
    return Notification(
        NotificationType.JOB_COMPLETED, recipient_id, "Job Completed",
        f'The job "{job.title}" has been marked as completed.',
        {"job_id": str(job.id)},
    )


def job_cancelled(recipient_id: UserId, job, reason: str | None = None) -> Notification:
    return Notification(
        NotificationType.JOB_CANCELLED, recipient_id, "Job Cancelled",
        _with_reason(f'The job "{job.title}" has been cancelled by the creator.', reason),
        {"job_id": str(job.id)}, NotificationPriority.HIGH,
    )


def job_acceptance_withdrawn(recipient_id: UserId, job, reason: str | None = None) -> Notification:
    return Notification(
        NotificationType.JOB_REOPENED, recipient_id, "Job Acceptance Cancelled",
        _with_reason(
            f'The job "{job.title}" is now available again as the previous '
            f"assignee cancelled their acceptance.",
            reason,
        ),
        {"job_id": str(job.id)}, NotificationPriority.HIGH,
    )


def job_reopened(recipient_id: UserId, job) -> Notification:
    return Notification(
        NotificationType.JOB_REOPENED, recipient_id, "Job Reopened",
        f'The job "{job.title}" has been reopened by the creator.',
        {"job_id": str(job.id)},
    )


def job_deleted(recipient_id: UserId, job) -> Notification:
    return Notification(
        NotificationType.JOB_CANCELLED, recipient_id, "Job Cancelled",
        f'The job "{job.title}" has been cancelled by the client.',
        {"job_id": str(job.id)}, NotificationPriority.HIGH,
    )


# ─── Reviews ─────────────────────────────────────────────────────

def review_received(review, job_title: str) -> Notification:
    return Notification(
        NotificationType.REVIEW_RECEIVED, review.reviewee_id, "New Review Received",
        f'You received a {review.rating}-star review for your work on "{job_title}"',
        {"review_id": str(review.id), "job_id": str(review.job_id)},
    )


def review_moderated(review, reason: str | None = None) -> Notification:
    verdict = "Approved" if review.status == "approved" else "Rejected"
    return Notification(
        NotificationType.REVIEW_MODERATED, review.reviewer_id, f"Review {verdict}",
        _with_reason(f"Your review has been {review.status}.", reason),
        {"review_id": str(review.id), "job_id": str(review.job_id)},
    )


# ─── Payments ────────────────────────────────────────────────────

def _format_amount(amount: int, currency: str) -> str:
    return f"{amount / 100:.2f} {currency.upper()}"


def payment_received(payment) -> Notification:
    return Notification(
        NotificationType.PAYMENT_RECEIVED, payment.helper_id, "Payment Secured",
        f"The client paid {_format_amount(payment.amount, payment.currency)}; "
        f"funds are held in escrow until the job is done.",
        {"payment_id": str(payment.id), "job_id": str(payment.job_id)},
    )


def payment_released(payment) -> Notification:
    return Notification(
        NotificationType.PAYMENT_RELEASED, payment.helper_id, "Payment Released",
        f"{_format_amount(payment.helper_amount, payment.currency)} has been "
        f"released to your payout account.",
        {"payment_id": str(payment.id), "job_id": str(payment.job_id)},
        NotificationPriority.HIGH,
    )


def dispute_opened(recipient_id: UserId, payment) -> Notification:
    return Notification(
        NotificationType.DISPUTE_OPENED, recipient_id, "Payment Disputed",
        f"A dispute was opened on a payment of "
        f"{_format_amount(payment.amount, payment.currency)}.",
        {"payment_id": str(payment.id), "job_id": str(payment.job_id)},
        NotificationPriority.URGENT,
    )


def dispute_resolved(recipient_id: UserId, payment, resolution: str) -> Notification:
    return Notification(
        NotificationType.DISPUTE_RESOLVED, recipient_id, "Dispute Resolved",
        f"The dispute was resolved: {resolution.replace('_', ' ')}.",
        {"payment_id": str(payment.id), "job_id": str(payment.job_id)},
        NotificationPriority.HIGH,
    )
