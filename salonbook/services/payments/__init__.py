"""Payment gateways and the payment lifecycle of an appointment."""

from salonbook.services.payments.base import PaymentGateway, PaymentIntent, Verification
from salonbook.services.payments.registry import get_gateway, get_gateways

__all__ = ["PaymentGateway", "PaymentIntent", "Verification", "get_gateway", "get_gateways"]
