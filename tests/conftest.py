"""Shared test fixtures for SalonBook API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL. The
clock is frozen at Monday 2026-03-02 08:00, notifications are recorded
instead of sent and payment gateways are replaced with fakes.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REMINDERS_ENABLED"] = "false"

from datetime import date, datetime, time
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from salonbook.core.database import Base, get_db
from salonbook.core.policy import get_clock
from salonbook.main import app
from salonbook.models import (
    Payment,
    PaymentProvider,
    PaymentStatus,
    Service,
    Staff,
    StaffAvailability,
    StaffService,
    User,
    UserRole,
)
from salonbook.services.auth import hash_password, token_for
from salonbook.services.notifier import Notifier, get_notifier
from salonbook.services.payments import PaymentIntent, Verification, get_gateways


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

NOW = datetime(2026, 3, 2, 8, 0)  # Monday
TUESDAY = date(2026, 3, 3)


def at_tuesday(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(TUESDAY, time(hour, minute))


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


class FakeClock:
    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current


@pytest.fixture(autouse=True)
def clock():
    frozen = FakeClock(NOW)
    app.dependency_overrides[get_clock] = lambda: frozen
    yield frozen
    app.dependency_overrides.pop(get_clock, None)


class RecordingNotifier(Notifier):
    """Records what would have been sent."""

    def __init__(self):
        super().__init__()
        self.sent: list[tuple[str, object]] = []

    async def send_booking_confirmation(self, event):
        self.sent.append(("confirmation", event))
        return True

    async def send_reschedule_notice(self, event):
        self.sent.append(("reschedule", event))
        return True

    async def send_cancellation_notice(self, event):
        self.sent.append(("cancellation", event))
        return True

    async def send_reminder(self, event):
        self.sent.append(("reminder", event))
        return True

    async def send_invoice(self, event):
        self.sent.append(("invoice", event))
        return True

    async def send_sms(self, to, body):
        self.sent.append(("sms", body))
        return True

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.sent]


@pytest.fixture(autouse=True)
def notifier():
    recorder = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_notifier, None)


class FakeGateway:
    """Gateway double: hands out sequential session refs and a fixed verification result."""

    def __init__(self, name: str, status: str = "pending"):
        self.name = name
        self.status = status
        self.amount = None
        self.created: list[tuple[Decimal, str, dict]] = []
        self.verified: list[str] = []

    async def create_intent(self, amount, currency, metadata):
        self.created.append((amount, currency, metadata))
        ref = f"{self.name}_ref_{len(self.created)}"
        return PaymentIntent(session_ref=ref, client_data={"ref": ref})

    async def verify(self, session_ref):
        self.verified.append(session_ref)
        return Verification(status=self.status, provider_payment_id=f"{session_ref}_txn", amount=self.amount)

    def verify_signature(self, order_id, payment_id, signature):
        return signature == "good-signature"


@pytest.fixture(autouse=True)
def gateways():
    fakes = {provider: FakeGateway(provider.value) for provider in PaymentProvider}
    app.dependency_overrides[get_gateways] = lambda: fakes
    yield fakes
    app.dependency_overrides.pop(get_gateways, None)


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


async def _user(db, email: str, role: UserRole, name: str, phone: str | None = "+919876543210") -> User:
    user = User(
        email=email,
        hashed_password=hash_password("testpass123"),
        full_name=name,
        phone=phone,
        role=role.value,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def customer(db):
    return await _user(db, "priya@example.com", UserRole.CUSTOMER, "Priya Shah")


@pytest_asyncio.fixture
async def other_customer(db):
    return await _user(db, "rahul@example.com", UserRole.CUSTOMER, "Rahul Mehta")


@pytest_asyncio.fixture
async def admin(db):
    return await _user(db, "admin@salon.test", UserRole.ADMIN, "Salon Admin")


@pytest_asyncio.fixture
async def salon(db):
    """Two stylists and three services, open 09:00-18:00 on Tuesdays.

    Xena performs the haircut and the facial, Yusuf performs the colour.
    """
    haircut = Service(name="Haircut", duration_minutes=30, price=Decimal("500.00"))
    colour = Service(name="Hair Colour", duration_minutes=45, price=Decimal("1500.00"))
    facial = Service(name="Facial", duration_minutes=60, price=Decimal("1200.00"))
    xena = Staff(name="Xena", email="xena@salon.test", specialization="Hair")
    yusuf = Staff(name="Yusuf", email="yusuf@salon.test", specialization="Colour")
    db.add_all([haircut, colour, facial, xena, yusuf])
    await db.flush()

    db.add_all([
        StaffService(staff_id=xena.id, service_id=haircut.id),
        StaffService(staff_id=xena.id, service_id=facial.id),
        StaffService(staff_id=yusuf.id, service_id=colour.id),
        StaffAvailability(staff_id=xena.id, day_of_week=2, start_time=time(9, 0), end_time=time(18, 0)),
        StaffAvailability(staff_id=yusuf.id, day_of_week=2, start_time=time(9, 0), end_time=time(18, 0)),
    ])
    await db.commit()
    return SimpleNamespace(haircut=haircut, colour=colour, facial=facial, xena=xena, yusuf=yusuf)


@pytest_asyncio.fixture
async def xena_user(db, salon):
    return await _user(db, "xena@salon.test", UserRole.STAFF, "Xena")


@pytest_asyncio.fixture
async def yusuf_user(db, salon):
    return await _user(db, "yusuf@salon.test", UserRole.STAFF, "Yusuf")


def lines(*pairs) -> list[dict]:
    return [{"serviceId": str(service.id), "staffId": str(staff.id)} for service, staff in pairs]


async def book(client, user, start: datetime, *pairs, notes=None):
    body = {"startTime": start.isoformat(), "services": lines(*pairs)}
    if notes:
        body["notes"] = notes
    return await client.post("/api/v1/appointments", json=body, headers=auth(user))


async def mark_paid(
    db,
    appointment_id,
    status=PaymentStatus.PAID,
    provider=PaymentProvider.STRIPE,
    ref="pi_seeded",
    amount=Decimal("2000.00"),
) -> Payment:
    """Seed a payment row directly, bypassing the gateways."""
    payment = Payment(
        appointment_id=UUID(str(appointment_id)),
        amount=amount,
        currency="INR",
        provider=provider,
        provider_payment_id=ref,
        status=status,
    )
    db.add(payment)
    await db.commit()
    return payment
