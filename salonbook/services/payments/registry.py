"""Gateway lookup by provider."""

from salonbook.models.payment import PaymentProvider
from salonbook.services.payments.base import PaymentGateway
from salonbook.services.payments.cashfree_gateway import CashfreeGateway
from salonbook.services.payments.razorpay_gateway import RazorpayGateway
from salonbook.services.payments.stripe_gateway import StripeGateway

_gateways: dict[PaymentProvider, PaymentGateway] | None = None


def get_gateways() -> dict[PaymentProvider, PaymentGateway]:
    """FastAPI dependency; tests override it with fakes."""
    global _gateways
    if _gateways is None:
        _gateways = {
            PaymentProvider.STRIPE: StripeGateway(),
            PaymentProvider.RAZORPAY: RazorpayGateway(),
            PaymentProvider.CASHFREE: CashfreeGateway(),
        }
    return _gateways


def get_gateway(provider: PaymentProvider | str, gateways: dict | None = None) -> PaymentGateway:
    gateways = gateways if gateways is not None else get_gateways()
    return gateways[PaymentProvider(provider)]
