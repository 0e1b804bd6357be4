"""Shared test fixtures and helpers."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from appointpro.database import get_db, init_db  # noqa: E402
from appointpro.domain.otp.dependencies import get_otp_service  # noqa: E402
from appointpro.domain.otp.service import OtpService  # noqa: E402
from appointpro.domain.otp.store import InMemoryOtpStore  # noqa: E402
from appointpro.main import app  # noqa: E402
from appointpro.models import PropertyType, ServiceCategory, User  # noqa: E402
from appointpro.security_utils import create_access_token  # noqa: E402
from appointpro.services.twilio_service import ChannelResult  # noqa: E402


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeChannel:
    """Message channel that records deliveries instead of sending them."""

    def __init__(self, name: str, succeed: bool = True, error: str = "delivery failed", raises: bool = False):
        self.name = name
        self.succeed = succeed
        self.error = error
        self.raises = raises
        self.sent: list[tuple[str, str]] = []

    async def deliver(self, phone: str, code: str) -> ChannelResult:
        self.sent.append((phone, code))
        if self.raises:
            raise RuntimeError(self.error)
        if self.succeed:
            return ChannelResult(success=True, message_id=f"{self.name}-{len(self.sent)}")
        return ChannelResult(success=False, error=self.error)


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_store():
    return InMemoryOtpStore()


@pytest.fixture
def whatsapp():
    return FakeChannel("whatsapp")


@pytest.fixture
def sms():
    return FakeChannel("sms")


@pytest.fixture
def otp_service(otp_store, whatsapp, sms, clock):
    return OtpService(store=otp_store, primary=whatsapp, secondary=sms, clock=clock)


@pytest.fixture
def client(db, otp_service):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_otp_service] = lambda: otp_service
    # No context manager: lifespan (schema on the real engine, sweeper) stays off
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


def make_user(
    db,
    phone: str = "+971501234567",
    role: str = "user",
    full_name: Optional[str] = "Test User",
    email: Optional[str] = None,
    password_hash: Optional[str] = None,
) -> User:
    """Helper to insert a User."""
    user = User(phone=phone, role=role, full_name=full_name, email=email, password_hash=password_hash)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def make_category(db, name: str = "Cleaning", slug: str = "cleaning", sort_order: int = 0, is_active: bool = True):
    category = ServiceCategory(name=name, slug=slug, sort_order=sort_order, is_active=is_active)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def make_property_type(db, name: str, slug: str, sort_order: int = 0, is_active: bool = True):
    property_type = PropertyType(name=name, slug=slug, sort_order=sort_order, is_active=is_active)
    db.add(property_type)
    db.commit()
    db.refresh(property_type)
    return property_type


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def admin(db):
    return make_user(db, phone="+971500000001", role="admin", full_name="Admin")
