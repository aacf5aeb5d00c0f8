"""
Pytest configuration and shared fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from guestdesk.database import Base, get_db
from guestdesk.models.ontology import (
    Hotel, Room, Service, User, UserRole, ServiceRequest,
    ServiceRequestStatus, Priority
)
from guestdesk.security.auth import create_access_token
from guestdesk.security.context import CallerContext
from guestdesk.main import app


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Database session"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Test client bound to the test session"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _noop(event):
    pass


@pytest.fixture
def noop_publisher():
    """Event publisher that drops everything"""
    return _noop


class RecordingPublisher:
    """Event publisher that keeps every event it is given"""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, event_type):
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def published():
    return RecordingPublisher()


# ============== Entity fixtures ==============

def _add(db, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def hotel(db_session):
    return _add(db_session, Hotel(name="Seaside Hotel"))


@pytest.fixture
def other_hotel(db_session):
    return _add(db_session, Hotel(name="Mountain Lodge"))


@pytest.fixture
def room(db_session, hotel):
    return _add(db_session, Room(hotel_id=hotel.id, room_number="101", room_type="standard"))


@pytest.fixture
def service(db_session, hotel):
    return _add(db_session, Service(
        hotel_id=hotel.id, name="Extra towels", category="housekeeping",
        description="Fresh towels delivered to the room"
    ))


@pytest.fixture
def guest(db_session, hotel):
    return _add(db_session, User(
        hotel_id=hotel.id, name="Gina Guest", email="gina@example.com",
        phone="555-0100", role=UserRole.GUEST
    ))


@pytest.fixture
def make_staff(db_session, hotel):
    """Factory: make_staff("Alice") -> hotel_staff user of the hotel"""
    def _make(name, hotel_id=None, role=UserRole.HOTEL_STAFF, is_active=True):
        return _add(db_session, User(
            hotel_id=hotel_id or hotel.id,
            name=name,
            email=f"{name.lower().replace(' ', '.')}.{(hotel_id or hotel.id)[:8]}@example.com",
            role=role,
            is_active=is_active,
        ))
    return _make


@pytest.fixture
def make_request(db_session, hotel, guest, service, room):
    """Factory: make_request(priority=..., status=..., assigned_staff=...) -> ServiceRequest"""
    counter = {"n": 0}

    def _make(title=None, priority=Priority.MEDIUM, status=ServiceRequestStatus.PENDING,
              assigned_staff=None, hotel_id=None, requested_at=None, **kwargs):
        counter["n"] += 1
        request = ServiceRequest(
            hotel_id=hotel_id or hotel.id,
            room_id=room.id if hotel_id is None else None,
            guest_id=guest.id,
            service_id=service.id,
            assigned_staff_id=assigned_staff.id if assigned_staff else None,
            title=title or f"Request {counter['n']}",
            priority=priority,
            status=status,
            requested_at=requested_at or datetime.now() - timedelta(minutes=100 - counter["n"]),
            **kwargs
        )
        return _add(db_session, request)
    return _make


@pytest.fixture
def alice(make_staff):
    return make_staff("Alice")


@pytest.fixture
def bob(make_staff):
    return make_staff("Bob")


@pytest.fixture
def manager(make_staff):
    return make_staff("Zoe Manager", role=UserRole.HOTEL_ADMIN)


@pytest.fixture
def caller(hotel):
    """Caller context of a hotel admin that is not itself a staff row"""
    return CallerContext(user_id="caller-1", role=UserRole.HOTEL_ADMIN, hotel_id=hotel.id)


# ============== Auth fixtures ==============

@pytest.fixture
def manager_token(manager):
    return create_access_token(manager.id, manager.role, manager.hotel_id)


@pytest.fixture
def auth_headers(manager_token):
    return {"Authorization": f"Bearer {manager_token}"}


@pytest.fixture
def guest_auth_headers(guest):
    token = create_access_token(guest.id, guest.role, guest.hotel_id)
    return {"Authorization": f"Bearer {token}"}
