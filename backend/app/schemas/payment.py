"""Payment Schemas: intent/confirm/dispute payloads and the payment representation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PaymentIntentCreate(BaseModel):
    job_id: UUID
    amount: int = Field(description="Amount in minor currency units (cents)")
    currency: str = Field("usd", min_length=3, max_length=3)
    description: str | None = Field(None, max_length=255)


class PaymentConfirm(BaseModel):
    gateway_intent_id: str = Field(min_length=1)


class DisputeCreate(BaseModel):
    reason: str
    description: str | None = Field(None, max_length=1000)


class DisputeResolve(BaseModel):
    resolution: str
    refund_amount: int | None = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_id: UUID
    client_id: UUID
    helper_id: UUID
    amount: int
    currency: str
    platform_fee: int
    helper_amount: int
    status: str
    gateway_intent_id: str
    description: str | None = None
    escrow_release_date: datetime | None = None
    escrow_auto_release: bool = False
    dispute_is_disputed: bool = False
    dispute_reason: str | None = None
    dispute_description: str | None = None
    dispute_resolution: str | None = None
    dispute_resolved_at: datetime | None = None
    refunded_amount: int = 0
    created_at: datetime
    completed_at: datetime | None = None


class PaymentIntentResponse(BaseModel):
    payment: PaymentResponse
    client_secret: str
