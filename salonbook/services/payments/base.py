"""Contract shared by the Stripe, Razorpay and Cashfree gateways."""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

PAID = "paid"
PENDING = "pending"


@dataclass(frozen=True)
class PaymentIntent:
    """A provider-side payment session.

    ``session_ref`` is what gets stored as ``Payment.provider_payment_id`` and
    later handed back to ``verify``; ``client_data`` is returned to the
    frontend so it can open the provider's checkout.
    """
    session_ref: str
    client_data: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Verification:
    status: str
    provider_payment_id: str | None = None
    # Amount the provider reports, in major units; None when it reports none
    amount: Decimal | None = None

    @property
    def is_paid(self) -> bool:
        return self.status == PAID


class PaymentGateway(Protocol):
    name: str

    async def create_intent(self, amount: Decimal, currency: str, metadata: dict) -> PaymentIntent:
        ...

    async def verify(self, session_ref: str) -> Verification:
        ...


def to_minor_units(amount: Decimal) -> int:
    """Rupees to paise (or dollars to cents)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major_units(amount: Decimal) -> str:
    return str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))
