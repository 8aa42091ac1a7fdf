"""Payment Routes: EscrowPaymentFlow operations over HTTP.

Invariants:
    - Gateway errors reach the client as 502 with `retryable` in the envelope
    - Only the client/helper of a payment can read it
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import Services, get_actor_id, get_services
from app.core.domain_types import UserId
from app.schemas.payment import (
    DisputeCreate,
    DisputeResolve,
    PaymentConfirm,
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentResponse,
)

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "/intent", response_model=PaymentIntentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment_intent(
    body: PaymentIntentCreate,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    created = await services.escrow.create_intent(
        body.job_id, body.amount, body.currency, actor_id, body.description,
    )
    return PaymentIntentResponse(
        payment=PaymentResponse.model_validate(created.payment),
        client_secret=created.client_secret,
    )


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.escrow.list_for_user(actor_id, status_filter, limit, offset)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.escrow.get_payment(payment_id, actor_id)


@router.post("/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(
    payment_id: UUID,
    body: PaymentConfirm,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.escrow.confirm(payment_id, body.gateway_intent_id, actor_id)


@router.post("/{payment_id}/release", response_model=PaymentResponse)
async def release_escrow(
    payment_id: UUID,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.escrow.release_escrow(payment_id, actor_id)


@router.post("/{payment_id}/dispute", response_model=PaymentResponse)
async def open_dispute(
    payment_id: UUID,
    body: DisputeCreate,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.escrow.open_dispute(
        payment_id, actor_id, body.reason, body.description,
    )


@router.post("/{payment_id}/resolve", response_model=PaymentResponse)
async def resolve_dispute(
    payment_id: UUID,
    body: DisputeResolve,
    actor_id: UserId = Depends(get_actor_id),
    services: Services = Depends(get_services),
):
    return await services.escrow.resolve_dispute(
        payment_id, actor_id, body.resolution, body.refund_amount,
    )
