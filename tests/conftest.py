"""Shared test fixtures for the booking API tests."""

import os

# Settings must be in place before autoshop modules read them
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
os.environ.setdefault("BOOKING_CLOSED_WEEKDAYS", "6")

from datetime import date, timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from autoshop.database import Base, get_db
from autoshop.domain.appointments.notifications import AppointmentNotifier, get_notifier
from autoshop.domain.appointments.schemas import BookingRequest
from autoshop.domain.appointments.service import AppointmentService
from autoshop.main import app
from autoshop.models import Appointment, Service, StaffUser
from autoshop.security_utils import create_access_token, hash_password


class RecordingNotifier(AppointmentNotifier):
    """Keeps dispatched payloads in memory; can be told to fail."""

    def __init__(self):
        self.payloads = []
        self.fail_with = None

    async def notify(self, payload):
        if self.fail_with is not None:
            raise self.fail_with
        self.payloads.append(payload)

    @property
    def actions(self) -> list[str]:
        return [payload.action for payload in self.payloads]


@pytest.fixture
def db_engine():
    """In-memory SQLite shared across threads for the test client."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    """Fresh database session per test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def catalog(db_session) -> dict[str, Service]:
    """Oil change (30), brake inspection (45), tire rotation (60) and a retired service."""
    services = {
        "oil": Service(name="Oil Change", duration_minutes=30, price_range="$40 - $60"),
        "brakes": Service(name="Brake Inspection", duration_minutes=45),
        "tires": Service(name="Tire Rotation", duration_minutes=60),
        "retired": Service(name="Carburetor Tune", duration_minutes=90, is_active=False),
    }
    db_session.add_all(services.values())
    db_session.commit()
    for service in services.values():
        db_session.refresh(service)
    return services


@pytest.fixture
def booking_date() -> date:
    """A future date the shop is open (not Sunday)."""
    day = date.today() + timedelta(days=7)
    while day.weekday() == 6:
        day += timedelta(days=1)
    return day


@pytest.fixture
def make_booking(booking_date, catalog):
    """Build a valid BookingRequest, overriding any field."""

    def _make(**overrides) -> BookingRequest:
        data = {
            "customer_name": "Jane Driver",
            "customer_email": "Jane@Example.com",
            "customer_phone": "902-555-0142",
            "car_make": "Toyota",
            "car_model": "Corolla",
            "car_year": 2018,
            "service_ids": [catalog["oil"].id],
            "appointment_date": booking_date,
            "appointment_time": "09:00",
            "notes": None,
        }
        data.update(overrides)
        return BookingRequest(**data)

    return _make


@pytest.fixture
def appointment_service(db_session, notifier) -> AppointmentService:
    return AppointmentService(db_session, notifier)


@pytest.fixture
def add_appointment(db_session, booking_date, catalog):
    """Insert an appointment row directly, bypassing the booking flow."""
    counter = {"n": 0}

    def _add(appointment_time: str, service_keys=("oil",), status="pending", appointment_date=None):
        counter["n"] += 1
        appointment = Appointment(
            confirmation_number=f"TEST{counter['n']:04d}",
            customer_name="Existing Customer",
            customer_email="existing@example.com",
            customer_phone="9025550100",
            car_make="Honda",
            car_model="Civic",
            car_year=2015,
            appointment_date=appointment_date or booking_date,
            appointment_time=appointment_time,
            service_ids=[catalog[key].id for key in service_keys],
            status=status,
        )
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _add


@pytest.fixture
def staff_user(db_session) -> StaffUser:
    staff = StaffUser(
        email="admin@autoshop.test",
        full_name="Shop Admin",
        password_hash=hash_password("correct-horse-battery"),
        role="admin",
    )
    db_session.add(staff)
    db_session.commit()
    db_session.refresh(staff)
    return staff


@pytest.fixture
def auth_headers(staff_user) -> dict[str, str]:
    token = create_access_token({"sub": str(staff_user.id), "role": staff_user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db_session, notifier) -> Generator[TestClient, None, None]:
    """Test client wired to the test database and the recording notifier."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    # Not used as a context manager, so the lifespan (create_all on the real engine) is skipped
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
