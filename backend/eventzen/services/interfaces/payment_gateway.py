"""
Payment gateway interface.
Allows swapping the payment provider (or a local stand-in) without changing
the booking workflow.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP


@dataclass(frozen=True)
class PaymentIntentResult:
    id: str
    client_secret: str
    amount: int
    currency: str
    status: str


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (e.g. dollars) to integer minor units (cents)."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway(ABC):
    """
    Interface for payment providers.

    Implementations:
    - StripeGateway: Stripe PaymentIntents API
    - MockGateway: deterministic local intents for development
    """

    @abstractmethod
    async def create_payment_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntentResult:
        """
        Create a provider-side payment intent.

        Args:
            amount_minor_units: Amount in the currency's smallest unit
            currency: ISO currency code, lower case
            metadata: Reconciliation tags stored with the intent

        Raises:
            GatewayError: If the provider call fails
        """
        pass
