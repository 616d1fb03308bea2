"""
Mock payment gateway - no network calls.
Used in development and whenever no Stripe key is configured.
"""

import uuid

from eventzen.services.interfaces.payment_gateway import PaymentGateway, PaymentIntentResult


class MockGateway(PaymentGateway):
    """
    Issues fake intents shaped like Stripe's.

    Use when:
    - Running locally without Stripe credentials
    - Demo environments
    """

    async def create_payment_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntentResult:
        intent_id = f"pi_mock_{uuid.uuid4().hex[:24]}"
        return PaymentIntentResult(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid.uuid4().hex[:16]}",
            amount=amount_minor_units,
            currency=currency,
            status="requires_payment_method",
        )
