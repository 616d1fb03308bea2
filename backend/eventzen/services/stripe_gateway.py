"""
Stripe implementation of the PaymentGateway interface.

The Stripe SDK is synchronous, so calls run in the threadpool to keep the
event loop free. Every Stripe failure is translated into GatewayError; the
workflow does not retry, and the booking stays pending so the client can try
again.
"""

import time

import stripe
from starlette.concurrency import run_in_threadpool

from eventzen.core.exceptions import GatewayError
from eventzen.core.logging import get_logger
from eventzen.core.metrics import gateway_latency
from eventzen.services.interfaces.payment_gateway import PaymentGateway, PaymentIntentResult

logger = get_logger(__name__)


class StripeGateway(PaymentGateway):
    """
    Stripe PaymentIntents.

    Amounts arrive already converted to minor units; this class never
    rescales them.
    """

    def __init__(
        self,
        api_key: str,
        api_version: str | None = None,
        max_network_retries: int = 1,
    ):
        if not api_key:
            raise ValueError("Stripe API key is required")
        self.api_key = api_key
        self.api_version = api_version
        stripe.max_network_retries = max_network_retries

    def _create(self, **params) -> stripe.PaymentIntent:
        options = {"api_key": self.api_key}
        if self.api_version:
            options["stripe_version"] = self.api_version
        return stripe.PaymentIntent.create(**params, **options)

    async def create_payment_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntentResult:
        started = time.perf_counter()
        try:
            intent = await run_in_threadpool(
                self._create,
                amount=amount_minor_units,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            logger.error(
                "stripe_payment_intent_failed",
                error=str(e),
                code=getattr(e, "code", None),
                metadata=metadata,
            )
            raise GatewayError("Error creating payment intent", error=e.user_message or str(e))
        finally:
            gateway_latency.observe(time.perf_counter() - started)

        logger.info(
            "stripe_payment_intent_created",
            payment_intent_id=intent.id,
            amount=amount_minor_units,
            currency=currency,
        )
        return PaymentIntentResult(
            id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status,
        )
