"""
Service request repository - tenant-scoped queries over ServiceRequest and staff
Every read takes the hotel id; a row of another hotel behaves exactly like a missing row
"""
from typing import List, Optional, Dict, Any, Iterable
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from guestdesk.models.ontology import (
    ServiceRequest, ServiceRequestStatus, Priority, PRIORITY_RANK,
    ACTIVE_STATUSES, User, STAFF_ROLES
)

logger = logging.getLogger(__name__)

_DETAIL_OPTIONS = (
    joinedload(ServiceRequest.guest),
    joinedload(ServiceRequest.room),
    joinedload(ServiceRequest.service),
    joinedload(ServiceRequest.assigned_staff),
)


class ServiceRequestRepository:
    """Service request repository"""

    def __init__(self, db: Session):
        self.db = db

    # ---------- requests ----------

    def get(self, hotel_id: str, request_id: str, with_details: bool = False) -> Optional[ServiceRequest]:
        query = self.db.query(ServiceRequest)
        if with_details:
            query = query.options(*_DETAIL_OPTIONS)
        return query.filter(
            ServiceRequest.id == request_id,
            ServiceRequest.hotel_id == hotel_id
        ).first()

    def get_many(self, hotel_id: str, request_ids: Iterable[str]) -> Dict[str, ServiceRequest]:
        """Resolve ids within the hotel; ids of other hotels are simply absent from the result"""
        ids = list(request_ids)
        if not ids:
            return {}
        rows = self.db.query(ServiceRequest).options(
            joinedload(ServiceRequest.service)
        ).filter(
            ServiceRequest.id.in_(ids),
            ServiceRequest.hotel_id == hotel_id
        ).all()
        return {row.id: row for row in rows}

    def list(self, hotel_id: str,
             status: Optional[ServiceRequestStatus] = None,
             priority: Optional[Priority] = None) -> List[ServiceRequest]:
        """List requests ordered by priority (urgent first), then most recent first"""
        query = self.db.query(ServiceRequest).options(*_DETAIL_OPTIONS).filter(
            ServiceRequest.hotel_id == hotel_id
        )
        if status:
            query = query.filter(ServiceRequest.status == status)
        if priority:
            query = query.filter(ServiceRequest.priority == priority)

        rows = query.order_by(ServiceRequest.requested_at.desc(), ServiceRequest.id).all()
        # Stable sort keeps the recency order inside each priority
        return sorted(rows, key=lambda r: PRIORITY_RANK[Priority(r.priority)], reverse=True)

    def update(self, hotel_id: str, request_id: str, values: Dict[str, Any],
               expected_status: Optional[ServiceRequestStatus] = None) -> int:
        """
        Update one request, optionally only while it is still in expected_status (compare-and-swap)

        Returns:
            number of rows changed (0 or 1)
        """
        query = self.db.query(ServiceRequest).filter(
            ServiceRequest.id == request_id,
            ServiceRequest.hotel_id == hotel_id
        )
        if expected_status is not None:
            query = query.filter(ServiceRequest.status == expected_status)
        return query.update(values, synchronize_session="fetch")

    # ---------- staff ----------

    def list_staff(self, hotel_id: str) -> List[User]:
        """Active staff of the hotel, ordered by name then id"""
        return self.db.query(User).filter(
            User.hotel_id == hotel_id,
            User.role.in_(STAFF_ROLES),
            User.is_active == True
        ).order_by(User.name, User.id).all()

    def get_staff(self, hotel_id: str, staff_id: str) -> Optional[User]:
        return self.db.query(User).filter(
            User.id == staff_id,
            User.hotel_id == hotel_id,
            User.role.in_(STAFF_ROLES),
            User.is_active == True
        ).first()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def count_active_by_staff(self, hotel_id: str) -> Dict[str, int]:
        """staff id -> number of pending/in-progress requests assigned to them"""
        rows = self.db.query(
            ServiceRequest.assigned_staff_id, func.count(ServiceRequest.id)
        ).filter(
            ServiceRequest.hotel_id == hotel_id,
            ServiceRequest.assigned_staff_id.isnot(None),
            ServiceRequest.status.in_(ACTIVE_STATUSES)
        ).group_by(ServiceRequest.assigned_staff_id).all()
        return {staff_id: count for staff_id, count in rows}
