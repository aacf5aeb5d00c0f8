"""
Ontology objects for the guest-services domain
Hotels are the tenant boundary: every room, service, staff member and request belongs to one hotel
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Text, Boolean, JSON,
    Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from guestdesk.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


# ============== Enums ==============

class UserRole(str, Enum):
    """User roles"""
    GUEST = "guest"
    HOTEL_STAFF = "hotel_staff"
    HOTEL_ADMIN = "hotel_admin"
    SUPER_ADMIN = "super_admin"


STAFF_ROLES = (UserRole.HOTEL_STAFF, UserRole.HOTEL_ADMIN)


class ServiceRequestStatus(str, Enum):
    """Service request status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses counted towards a staff member's workload
ACTIVE_STATUSES = (ServiceRequestStatus.PENDING, ServiceRequestStatus.IN_PROGRESS)


class Priority(str, Enum):
    """Request priority, declared from lowest to highest"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


PRIORITY_RANK = {priority: rank for rank, priority in enumerate(Priority)}


# ============== Objects ==============

class Hotel(Base):
    """
    Hotel object (tenant)
    """
    __tablename__ = "hotels"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    # Links
    rooms = relationship("Room", back_populates="hotel")
    services = relationship("Service", back_populates="hotel")
    users = relationship("User", back_populates="hotel")


class Room(Base):
    """Room object"""
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=_new_id)
    hotel_id = Column(String(36), ForeignKey("hotels.id"), nullable=False, index=True)
    room_number = Column(String(20), nullable=False)
    room_type = Column(String(50))
    created_at = Column(DateTime, default=datetime.now)

    hotel = relationship("Hotel", back_populates="rooms")


class Service(Base):
    """
    Service catalogue entry (room service, housekeeping, maintenance...)
    """
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=_new_id)
    hotel_id = Column(String(36), ForeignKey("hotels.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.now)

    hotel = relationship("Hotel", back_populates="services")


class User(Base):
    """
    User object
    Guests raise requests; hotel_staff / hotel_admin users are the assignable staff
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    hotel_id = Column(String(36), ForeignKey("hotels.id"), nullable=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    phone = Column(String(20))
    role = Column(SQLEnum(UserRole), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)

    # Links
    hotel = relationship("Hotel", back_populates="users")
    assigned_requests = relationship(
        "ServiceRequest", foreign_keys="ServiceRequest.assigned_staff_id",
        back_populates="assigned_staff"
    )


class ServiceRequest(Base):
    """
    Service request object - the unit of work routed to staff
    assigned_staff_id / status / started_at / completed_at are only mutated by
    the assignment, lifecycle and bulk services
    """
    __tablename__ = "service_requests"

    id = Column(String(36), primary_key=True, default=_new_id)
    hotel_id = Column(String(36), ForeignKey("hotels.id"), nullable=False, index=True)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=True)
    guest_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    assigned_staff_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    priority = Column(SQLEnum(Priority), nullable=False, default=Priority.MEDIUM)
    status = Column(SQLEnum(ServiceRequestStatus), nullable=False,
                    default=ServiceRequestStatus.PENDING, index=True)
    requested_at = Column(DateTime, nullable=False, default=datetime.now)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)

    # Links
    hotel = relationship("Hotel")
    room = relationship("Room")
    service = relationship("Service")
    guest = relationship("User", foreign_keys=[guest_id])
    assigned_staff = relationship("User", foreign_keys=[assigned_staff_id],
                                  back_populates="assigned_requests")


class AnalyticsEvent(Base):
    """
    Append-only audit record
    event_data holds the payload of one of the typed events in guestdesk.models.events
    """
    __tablename__ = "analytics_events"

    id = Column(String(36), primary_key=True, default=_new_id)
    hotel_id = Column(String(36), ForeignKey("hotels.id"), nullable=False, index=True)
    event_type = Column(String(50), nullable=False, index=True)
    event_data = Column(JSON, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.now, index=True)
