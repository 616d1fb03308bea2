"""
Payment gateway factory.
Configures which payment provider the workflow talks to.
"""

from typing import Optional

from eventzen.core.config import get_settings
from eventzen.core.logging import get_logger
from eventzen.services.interfaces.payment_gateway import PaymentGateway
from eventzen.services.interfaces.mock_gateway import MockGateway
from eventzen.services.stripe_gateway import StripeGateway

logger = get_logger(__name__)


def build_payment_gateway() -> PaymentGateway:
    """
    Build the configured gateway.

    PAYMENT_GATEWAY=stripe uses Stripe when STRIPE_SECRET_KEY is set and
    falls back to the mock gateway otherwise; PAYMENT_GATEWAY=mock always
    uses the mock.
    """
    settings = get_settings()

    if settings.PAYMENT_GATEWAY == "stripe":
        if settings.STRIPE_SECRET_KEY:
            return StripeGateway(
                api_key=settings.STRIPE_SECRET_KEY,
                api_version=settings.STRIPE_API_VERSION,
                max_network_retries=settings.STRIPE_MAX_NETWORK_RETRIES,
            )
        logger.warning("stripe_not_configured", message="Using mock payment gateway")
    return MockGateway()


_gateway: Optional[PaymentGateway] = None


def get_payment_gateway() -> PaymentGateway:
    """Get payment gateway singleton. Used as a FastAPI dependency."""
    global _gateway
    if _gateway is None:
        _gateway = build_payment_gateway()
    return _gateway
