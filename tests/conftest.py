"""Shared fixtures: in-memory database, seeded users/pets, API client."""

import os

# Configure before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from app.auth import get_current_user
from app.database import Base, SessionLocal, engine
from app.domain.hosting.router import booking_create_rate_limit
from app.domain.hosting.schemas import BookingCreate, BookingDecision, HostCreate
from app.domain.hosting.service import HostingService
from app.main import app
from app.models import Pet, User

# Always in the future so the "check-in in the past" rule never trips
NEXT_YEAR = date.today().year + 1


def jan(day: int) -> date:
    return date(NEXT_YEAR, 1, day)


def days_from_now(days: int) -> date:
    return date.today() + timedelta(days=days)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    # Objects stay readable after commits made by request sessions
    session = SessionLocal(expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(is_active=True):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            firebase_uid=f"uid-{n}",
            email=f"user{n}@example.com",
            full_name=f"User {n}",
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_pet(db):
    def _make(owner, size="medium", is_active=True, name="Rex"):
        pet = Pet(owner_id=owner.id, name=name, species="dog", size=size, is_active=is_active)
        db.add(pet)
        db.commit()
        db.refresh(pet)
        return pet

    return _make


@pytest.fixture
def service(db):
    return HostingService(db)


@pytest.fixture
def host_user(make_user):
    return make_user()


@pytest.fixture
def owner(make_user):
    return make_user()


@pytest.fixture
def host(service, host_user):
    return service.create_host(
        HostCreate(
            bio="Big yard, lots of walks",
            address="12 Oak Street",
            city="Austin",
            state="TX",
            latitude=30.2672,
            longitude=-97.7431,
            maxPets=1,
            baseDailyRate=30.0,
            sizePricingTiers={"small": 1.0, "medium": 1.2, "large": 1.5},
            durationDiscounts={"weekly": 0.1, "monthly": 0.2},
        ),
        host_user,
    )


@pytest.fixture
def pet(make_pet, owner):
    return make_pet(owner, size="large")


@pytest.fixture
def book(service, host, owner):
    """Create a booking and optionally push it along the lifecycle."""

    def _book(pet, check_in, check_out, status="pending_approval", host_obj=None, host_owner=None,
              pet_owner=None, services=None):
        target = host_obj or host
        acting_host = host_owner or _host_user(service, target)
        booker = pet_owner or owner
        booking = service.create_booking(
            BookingCreate(
                hostId=target.id,
                petId=pet.id,
                checkInDate=check_in,
                checkOutDate=check_out,
                additionalServices=services or [],
            ),
            booker,
        )
        steps = ["approved", "confirmed", "in_progress", "completed"]
        if status in steps:
            for step in steps[: steps.index(status) + 1]:
                if step == "approved":
                    booking = service.decide_booking(booking.id, BookingDecision(approve=True), acting_host)
                elif step == "confirmed":
                    booking = service.confirm_booking(booking.id, booker)
                elif step == "in_progress":
                    booking = service.start_stay(booking.id, acting_host)
                else:
                    booking = service.complete_stay(booking.id, acting_host)
        return booking

    return _book


def _host_user(service, host_obj):
    return service.db.query(User).filter(User.id == host_obj.user_id).first()


# ── API client ──────────────────────────────────────────


class Identity:
    """Mutable stand-in for the authenticated user."""

    def __init__(self):
        self.user = None

    def __call__(self):
        return self.user


@pytest.fixture
def identity():
    return Identity()


@pytest.fixture
def client(db, identity):
    async def no_rate_limit():
        return None

    app.dependency_overrides[get_current_user] = identity
    app.dependency_overrides[booking_create_rate_limit] = no_rate_limit
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
