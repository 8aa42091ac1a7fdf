"""EscrowPaymentFlow: capture, hold, release and dispute payments for accepted jobs.

Invariants:
    - amount == platform_fee + helper_amount, fee from compute_fee_split
    - helper_id == job.assigned_to_id when the payment is created
    - At most one non-failed payment per job
    - Every gateway-backed step first claims the payment with a conditional status
      write (pending/completed/disputed -> processing); the claim is reverted if the
      gateway call fails, and local state is only finalized after gateway success
    - Job status changes only through JobLifecycle.mark_paid / mark_released
    - Gateway errors are surfaced as-is (GatewayError carries `retryable`); never retried here

Design Decisions:
    - Confirming an already-completed payment returns it unchanged (replay-safe)
    - Disputes freeze held escrow: completed (unreleased) -> disputed
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from app.core.domain_types import (
    DisputeResolution,
    JobId,
    PaymentId,
    PaymentStatus,
    UserId,
    UserStat,
)
from app.core.enforce_escrow import (
    DEFAULT_FEE_RATE,
    SUCCEEDED_INTENT_STATUS,
    check_can_confirm,
    check_can_create_intent,
    check_can_dispute,
    check_can_release,
    check_job_payable,
    compute_fee_split,
    plan_resolution,
    validate_amount,
    validate_currency,
)
from app.core.enforce_job_transitions import check_can_mark_released
from app.core.errors import (
    ConflictError,
    ErrorContext,
    ForbiddenError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    PaymentFailedError,
    ValidationError,
)
from app.core.notifications import (
    dispute_opened,
    dispute_resolved,
    payment_received,
    payment_released,
)
from app.core.repository_protocols import (
    JobRepository,
    NotificationSink,
    PaymentGateway,
    PaymentRepository,
    UserDirectory,
)
from app.models.payment import Payment
from app.services.job_lifecycle import JobLifecycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreatedIntent:
    payment: Payment
    client_secret: str


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _ctx(payment) -> ErrorContext:
    return ErrorContext(payment_id=str(payment.id), job_id=str(payment.job_id))


class EscrowPaymentFlow:

    def __init__(
        self,
        payments: PaymentRepository,
        jobs: JobRepository,
        users: UserDirectory,
        gateway: PaymentGateway,
        job_lifecycle: JobLifecycle,
        notifications: NotificationSink,
        fee_rate: Decimal = DEFAULT_FEE_RATE,
    ):
        self.payments = payments
        self.jobs = jobs
        self.users = users
        self.gateway = gateway
        self.job_lifecycle = job_lifecycle
        self.notifications = notifications
        self.fee_rate = fee_rate

    async def _get(self, payment_id: PaymentId) -> Payment:
        payment = await self.payments.get(payment_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment

    async def _payout_account(self, helper_id: UserId) -> str:
        helper = await self.users.find_by_id(helper_id)
        if helper is None:
            raise NotFoundError("User", helper_id)
        if not helper.stripe_account_id:
            raise InvalidStateError("Helper has no payout account connected")
        return helper.stripe_account_id

    async def _claim(self, payment: Payment, from_status: PaymentStatus) -> None:
        if not await self.payments.transition(
            payment.id, from_status, PaymentStatus.PROCESSING,
        ):
            raise InvalidStateError(
                "Payment is already being processed", PaymentStatus.PROCESSING.value,
                _ctx(payment),
            )

    async def _release_claim(self, payment: Payment, to_status: PaymentStatus) -> None:
        await self.payments.transition(payment.id, PaymentStatus.PROCESSING, to_status)
        logger.warning(
            f"Gateway call failed, payment returned to {to_status.value}",
            extra={"payment_id": str(payment.id)},
        )

    # ─── Capture ─────────────────────────────────────────────────

    async def create_intent(
        self,
        job_id: JobId,
        amount: int,
        currency: str,
        client_id: UserId,
        description: str | None = None,
    ) -> CreatedIntent:
        amount = validate_amount(amount)
        currency = validate_currency(currency)

        job = await self.jobs.get(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        check_can_create_intent(job, client_id)
        if await self.payments.find_active_for_job(job_id) is not None:
            raise ConflictError(
                "A payment already exists for this job", ErrorContext(job_id=str(job_id)),
            )

        split = compute_fee_split(amount, self.fee_rate)
        intent = await self.gateway.create_intent(amount, currency, {
            "job_id": str(job_id),
            "client_id": str(client_id),
            "helper_id": str(job.assigned_to_id),
            "platform_fee": str(split.platform_fee),
        })

        payment = await self.payments.add(Payment(
            job_id=job_id,
            client_id=client_id,
            helper_id=job.assigned_to_id,
            amount=split.amount,
            currency=currency.value,
            platform_fee=split.platform_fee,
            helper_amount=split.helper_amount,
            status=PaymentStatus.PENDING.value,
            gateway_intent_id=intent.id,
            description=description or f"Payment for job: {job.title}"[:255],
            dispute_is_disputed=False,
            refunded_amount=0,
        ))
        logger.info(
            f"Payment intent created: {amount} {currency.value}",
            extra={"payment_id": str(payment.id), "job_id": str(job_id)},
        )
        return CreatedIntent(payment=payment, client_secret=intent.client_secret)

    async def confirm(
        self,
        payment_id: PaymentId,
        gateway_intent_id: str,
        client_id: UserId | None = None,
    ) -> Payment:
        payment = await self._get(payment_id)
        if client_id is not None and payment.client_id != client_id:
            raise ForbiddenError("Only the client can confirm this payment", _ctx(payment))
        if not check_can_confirm(payment, gateway_intent_id):
            return payment

        job = await self.jobs.get(payment.job_id)
        if job is None:
            raise NotFoundError("Job", payment.job_id)
        check_job_payable(job, payment)

        await self._claim(payment, PaymentStatus.PENDING)
        try:
            gateway_status = await self.gateway.retrieve_intent(gateway_intent_id)
        except MarketplaceError:
            await self._release_claim(payment, PaymentStatus.PENDING)
            raise

        payment = await self._get(payment_id)
        if gateway_status != SUCCEEDED_INTENT_STATUS:
            payment.status = PaymentStatus.FAILED.value
            await self.payments.save(payment)
            logger.warning(
                f"Payment not successful: {gateway_status}",
                extra={"payment_id": str(payment_id), "error_code": "PAYMENT_FAILED"},
            )
            raise PaymentFailedError(
                "Payment was not successful", gateway_status, _ctx(payment),
            )

        payment.status = PaymentStatus.COMPLETED.value
        payment.completed_at = _now()
        await self.payments.save(payment)
        await self.job_lifecycle.mark_paid(payment.job_id)
        logger.info(
            "Payment captured into escrow",
            extra={"payment_id": str(payment_id), "job_id": str(payment.job_id)},
        )

        await self.notifications.notify(payment_received(payment))
        return payment

    # ─── Release ─────────────────────────────────────────────────

    async def release_escrow(self, payment_id: PaymentId, client_id: UserId) -> Payment:
        payment = await self._get(payment_id)
        check_can_release(payment, client_id)
        destination = await self._payout_account(payment.helper_id)
        job = await self.jobs.get(payment.job_id)
        if job is None:
            raise NotFoundError("Job", payment.job_id)
        check_can_mark_released(job)

        await self._claim(payment, PaymentStatus.COMPLETED)
        try:
            transfer_id = await self.gateway.transfer(
                payment.helper_amount, payment.currency, destination,
                {"payment_id": str(payment.id), "job_id": str(payment.job_id)},
            )
        except MarketplaceError:
            await self._release_claim(payment, PaymentStatus.COMPLETED)
            raise

        payment = await self._get(payment_id)
        payment.status = PaymentStatus.COMPLETED.value
        payment.escrow_release_date = _now()
        payment.gateway_transfer_id = transfer_id
        await self.payments.save(payment)
        await self.job_lifecycle.mark_released(payment.job_id)
        await self.users.increment_stat(
            payment.helper_id, UserStat.TOTAL_EARNINGS, payment.helper_amount,
        )
        logger.info(
            "Escrow released to helper",
            extra={"payment_id": str(payment_id), "user_id": str(payment.helper_id)},
        )

        await self.notifications.notify(payment_released(payment))
        return payment

    # ─── Disputes ────────────────────────────────────────────────

    async def open_dispute(
        self,
        payment_id: PaymentId,
        actor_id: UserId,
        reason: str,
        description: str | None = None,
    ) -> Payment:
        payment = await self._get(payment_id)
        dispute_reason = check_can_dispute(payment, actor_id, reason)

        if not await self.payments.transition(
            payment_id, PaymentStatus.COMPLETED, PaymentStatus.DISPUTED,
        ):
            raise InvalidStateError(
                "Payment changed state while opening the dispute", context=_ctx(payment),
            )
        payment = await self._get(payment_id)
        payment.dispute_is_disputed = True
        payment.dispute_reason = dispute_reason.value
        payment.dispute_description = description
        await self.payments.save(payment)
        logger.info(
            f"Dispute opened ({dispute_reason.value})",
            extra={"payment_id": str(payment_id), "user_id": str(actor_id)},
        )

        counterpart = payment.helper_id if actor_id == payment.client_id else payment.client_id
        await self.notifications.notify(dispute_opened(counterpart, payment))
        return payment

    async def resolve_dispute(
        self,
        payment_id: PaymentId,
        admin_id: UserId,
        resolution: str,
        refund_amount: int | None = None,
    ) -> Payment:
        admin = await self.users.find_by_id(admin_id)
        if admin is None or not admin.is_admin:
            raise ForbiddenError("Only administrators can resolve disputes")

        payment = await self._get(payment_id)
        plan = plan_resolution(payment, resolution, refund_amount)
        destination = None
        if plan.transfer_amount:
            destination = await self._payout_account(payment.helper_id)

        await self._claim(payment, PaymentStatus.DISPUTED)
        transfer_id = None
        try:
            if plan.resolution == DisputeResolution.REFUND_CLIENT:
                await self.gateway.refund(payment.gateway_intent_id)
            elif plan.refund_amount and payment.refunded_amount != plan.refund_amount:
                await self.gateway.refund(payment.gateway_intent_id, plan.refund_amount)
                # Partial refund is persisted before the transfer so a retry skips it
                payment = await self._get(payment_id)
                payment.refunded_amount = plan.refund_amount
                payment.refunded_at = _now()
                await self.payments.save(payment)
            if plan.transfer_amount:
                transfer_id = await self.gateway.transfer(
                    plan.transfer_amount, payment.currency, destination,
                    {"payment_id": str(payment.id), "job_id": str(payment.job_id)},
                )
        except MarketplaceError:
            await self._release_claim(payment, PaymentStatus.DISPUTED)
            raise

        payment = await self._get(payment_id)
        now = _now()
        payment.status = plan.final_status.value
        payment.dispute_resolution = plan.resolution.value
        payment.dispute_resolved_by_id = admin_id
        payment.dispute_resolved_at = now
        if plan.resolution == DisputeResolution.REFUND_CLIENT:
            payment.refunded_amount = payment.amount
            payment.refunded_at = now
        if transfer_id is not None:
            payment.escrow_release_date = now
            payment.gateway_transfer_id = transfer_id
        await self.payments.save(payment)
        logger.info(
            f"Dispute resolved ({plan.resolution.value})",
            extra={"payment_id": str(payment_id), "user_id": str(admin_id)},
        )

        if plan.transfer_amount:
            await self.job_lifecycle.mark_released(payment.job_id)
            await self.users.increment_stat(
                payment.helper_id, UserStat.TOTAL_EARNINGS, plan.transfer_amount,
            )
        await self.notifications.notify_many([
            dispute_resolved(payment.client_id, payment, plan.resolution.value),
            dispute_resolved(payment.helper_id, payment, plan.resolution.value),
        ])
        return payment

    # ─── Reads ───────────────────────────────────────────────────

    async def get_payment(self, payment_id: PaymentId, actor_id: UserId) -> Payment:
        payment = await self._get(payment_id)
        if actor_id not in (payment.client_id, payment.helper_id):
            raise ForbiddenError("Not authorized to view this payment", _ctx(payment))
        return payment

    async def list_for_user(
        self,
        user_id: UserId,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Payment]:
        payment_status = None
        if status is not None:
            try:
                payment_status = PaymentStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown payment status '{status}'", field="status")
        return await self.payments.list_for_user(user_id, payment_status, limit, offset)
