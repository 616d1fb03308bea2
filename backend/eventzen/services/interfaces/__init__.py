"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .payment_gateway import PaymentGateway, PaymentIntentResult, to_minor_units
from .mock_gateway import MockGateway

__all__ = ['PaymentGateway', 'PaymentIntentResult', 'MockGateway', 'to_minor_units']
