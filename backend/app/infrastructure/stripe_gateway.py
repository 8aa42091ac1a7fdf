"""Stripe Payment Gateway: PaymentGateway Protocol backed by Stripe PaymentIntents and Connect.

Invariants:
    - Every call is a single non-idempotent network operation; no retries here
    - Card declines and invalid requests surface as PaymentFailedError (terminal)
    - Connection, rate-limit and 5xx failures surface as GatewayError(retryable=True)
    - Any other StripeError surfaces as GatewayError(retryable=False)

Design Decisions:
    - The stripe SDK is synchronous: calls run in asyncio.to_thread so the
      event loop is never blocked
    - api_key passed per call instead of mutating the module-level stripe.api_key
    - The SDK HTTP timeout is process-wide (stripe.default_http_client); it is set
      once by configure_stripe_http from the app lifespan, never per gateway
"""

import asyncio
import logging

import stripe

from app.core.domain_types import Currency
from app.core.errors import GatewayError, PaymentFailedError
from app.core.repository_protocols import GatewayIntent

logger = logging.getLogger(__name__)


def configure_stripe_http(timeout_seconds: int) -> None:
    stripe.default_http_client = stripe.RequestsClient(timeout=timeout_seconds)


class StripePaymentGateway:

    def __init__(self, api_key: str):
        self._api_key = api_key

    async def _call(self, operation: str, fn, **params):
        try:
            return await asyncio.to_thread(fn, api_key=self._api_key, **params)
        except stripe.CardError as e:
            logger.warning(f"Stripe {operation} declined: {e.user_message}")
            raise PaymentFailedError(
                e.user_message or "Card declined", gateway_status=e.code,
            )
        except stripe.InvalidRequestError as e:
            logger.warning(f"Stripe {operation} rejected: {e}")
            raise PaymentFailedError(str(e), gateway_status=e.code)
        except (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError) as e:
            logger.error(f"Stripe {operation} unavailable: {e}", exc_info=True)
            raise GatewayError(str(e), operation, retryable=True)
        except stripe.StripeError as e:
            logger.error(f"Stripe {operation} failed: {e}", exc_info=True)
            raise GatewayError(str(e), operation, retryable=False)

    async def create_intent(
        self, amount: int, currency: Currency, metadata: dict[str, str],
    ) -> GatewayIntent:
        intent = await self._call(
            "create_intent",
            stripe.PaymentIntent.create,
            amount=amount,
            currency=Currency(currency).value,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
        logger.info(f"Stripe intent created: {intent.id}")
        return GatewayIntent(id=intent.id, client_secret=intent.client_secret)

    async def retrieve_intent(self, intent_id: str) -> str:
        intent = await self._call(
            "retrieve_intent", stripe.PaymentIntent.retrieve, id=intent_id,
        )
        return intent.status

    async def transfer(
        self, amount: int, currency: Currency, destination_account: str,
        metadata: dict[str, str],
    ) -> str:
        transfer = await self._call(
            "transfer",
            stripe.Transfer.create,
            amount=amount,
            currency=Currency(currency).value,
            destination=destination_account,
            metadata=metadata,
        )
        logger.info(f"Stripe transfer created: {transfer.id}")
        return transfer.id

    async def refund(self, intent_id: str, amount: int | None = None) -> str:
        params = {"payment_intent": intent_id}
        if amount is not None:
            params["amount"] = amount
        refund = await self._call("refund", stripe.Refund.create, **params)
        logger.info(f"Stripe refund created: {refund.id}")
        return refund.id
