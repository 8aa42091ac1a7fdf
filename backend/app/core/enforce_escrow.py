"""Escrow Rules: fee split and pure preconditions for every EscrowPaymentFlow step.

Invariants:
    - amount == platform_fee + helper_amount for every split
    - platform_fee == round_half_up(amount * fee_rate)
    - Only the client releases escrow, and only from COMPLETED with no prior release
    - A payment is disputed at most once; disputes open only on held escrow
    - partial_refund requires 0 < refund_amount < helper_amount (platform fee retained)
    - Once a partial refund is recorded, only that same partial_refund can be retried
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from app.core.domain_types import (
    Currency,
    DisputeReason,
    DisputeResolution,
    JobStatus,
    PaymentStatus,
    UserId,
)
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    ValidationError,
)
from app.core.repository_protocols import JobLike, PaymentLike

DEFAULT_FEE_RATE = Decimal("0.05")
SUCCEEDED_INTENT_STATUS = "succeeded"


@dataclass(frozen=True)
class FeeSplit:
    amount: int
    platform_fee: int
    helper_amount: int


@dataclass(frozen=True)
class ResolutionPlan:
    resolution: DisputeResolution
    refund_amount: int | None
    transfer_amount: int | None
    final_status: PaymentStatus


def compute_fee_split(amount: int, fee_rate: Decimal = DEFAULT_FEE_RATE) -> FeeSplit:
    fee = int((Decimal(amount) * fee_rate).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return FeeSplit(amount=amount, platform_fee=fee, helper_amount=amount - fee)


def validate_amount(amount: object) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise ValidationError(
            "Amount must be a positive integer in minor currency units", field="amount",
        )
    return amount


def validate_currency(currency: str) -> Currency:
    try:
        return Currency(str(currency).lower())
    except ValueError:
        raise ValidationError(
            f"Unsupported currency '{currency}'", field="currency",
        )


def check_can_create_intent(job: JobLike, client_id: UserId) -> None:
    if job.creator_id != client_id:
        raise ForbiddenError("You can only pay for your own jobs")
    status = JobStatus(job.status)
    if status != JobStatus.ACCEPTED or job.assigned_to_id is None:
        raise InvalidStateError("Job must be accepted before payment", status.value)


def check_can_confirm(payment: PaymentLike, gateway_intent_id: str) -> bool:
    """Return False when the payment is already confirmed (idempotent replay)."""
    if payment.gateway_intent_id != gateway_intent_id:
        raise ValidationError(
            "Gateway intent does not belong to this payment", field="gateway_intent_id",
        )
    status = PaymentStatus(payment.status)
    if status == PaymentStatus.COMPLETED:
        return False
    if status != PaymentStatus.PENDING:
        raise InvalidStateError(
            f"Cannot confirm a payment that is {status.value}", status.value,
        )
    return True


def check_job_payable(job: JobLike, payment: PaymentLike) -> None:
    """The job must still be accepted by the helper the payment was created for."""
    status = JobStatus(job.status)
    if status != JobStatus.ACCEPTED or job.assigned_to_id != payment.helper_id:
        raise InvalidStateError(
            "Job is no longer accepted by the payment's helper", status.value,
        )


def check_can_release(payment: PaymentLike, client_id: UserId) -> None:
    if payment.client_id != client_id:
        raise ForbiddenError("Only the client can release escrow")
    status = PaymentStatus(payment.status)
    if status != PaymentStatus.COMPLETED:
        raise InvalidStateError(
            "Payment must be completed to release escrow", status.value,
        )
    if payment.escrow_release_date is not None:
        raise InvalidStateError("Escrow has already been released", status.value)


def check_can_dispute(payment: PaymentLike, actor_id: UserId, reason: str) -> DisputeReason:
    if actor_id not in (payment.client_id, payment.helper_id):
        raise ForbiddenError("Only the client or helper can dispute this payment")
    if payment.dispute_is_disputed:
        raise ConflictError("Dispute already exists")
    try:
        dispute_reason = DisputeReason(reason)
    except ValueError:
        raise ValidationError(f"Unknown dispute reason '{reason}'", field="reason")
    status = PaymentStatus(payment.status)
    if status != PaymentStatus.COMPLETED or payment.escrow_release_date is not None:
        raise InvalidStateError(
            "Only payments held in escrow can be disputed", status.value,
        )
    return dispute_reason


def plan_resolution(
    payment: PaymentLike, resolution: str, refund_amount: int | None = None,
) -> ResolutionPlan:
    status = PaymentStatus(payment.status)
    if status != PaymentStatus.DISPUTED:
        raise InvalidStateError("No dispute to resolve", status.value)
    try:
        decided = DisputeResolution(resolution)
    except ValueError:
        raise ValidationError(f"Unknown resolution '{resolution}'", field="resolution")

    already_refunded = payment.refunded_amount or 0
    if already_refunded and not (
        decided == DisputeResolution.PARTIAL_REFUND and refund_amount == already_refunded
    ):
        raise InvalidStateError(
            f"A partial refund of {already_refunded} was already issued; "
            "only that partial_refund can be retried",
            status.value,
        )

    if decided == DisputeResolution.REFUND_CLIENT:
        return ResolutionPlan(decided, None, None, PaymentStatus.REFUNDED)
    if decided == DisputeResolution.PAY_HELPER:
        return ResolutionPlan(decided, None, payment.helper_amount, PaymentStatus.COMPLETED)

    if (
        not isinstance(refund_amount, int) or isinstance(refund_amount, bool)
        or not 0 < refund_amount < payment.helper_amount
    ):
        raise ValidationError(
            "partial_refund requires refund_amount between 1 and the helper amount minus 1",
            field="refund_amount",
        )
    return ResolutionPlan(
        decided, refund_amount, payment.helper_amount - refund_amount,
        PaymentStatus.COMPLETED,
    )
