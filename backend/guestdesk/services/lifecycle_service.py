"""
Request lifecycle controller
Ad-hoc status updates and reassignment from the staff dashboard, plus the tenant-scoped listing
"""
from typing import List, Optional, Callable, Any
from datetime import datetime
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from guestdesk.domain.service_request import ServiceRequestEntity
from guestdesk.models.ontology import ServiceRequest, ServiceRequestStatus, Priority
from guestdesk.models.events import (
    EventType, ServiceRequestReassignedData, ServiceRequestStatusUpdatedData
)
from guestdesk.security.context import CallerContext
from guestdesk.services.analytics_service import AnalyticsService
from guestdesk.services.errors import ValidationError, NotFoundError, InvalidStaffError
from guestdesk.services.event_bus import event_bus, Event
from guestdesk.services.request_repository import ServiceRequestRepository

logger = logging.getLogger(__name__)

# Marks "assignee not part of the update", as opposed to None which clears it
UNSET: Any = object()


class RequestLifecycleController:
    """Request lifecycle controller"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.repository = ServiceRequestRepository(db)
        self.analytics = AnalyticsService(db)
        self._publish_event = event_publisher or event_bus.publish

    def list_requests(self, caller: CallerContext,
                      status: Optional[ServiceRequestStatus] = None,
                      priority: Optional[Priority] = None) -> List[ServiceRequest]:
        """Requests of the caller's hotel, urgent first, newest first within a priority"""
        return self.repository.list(caller.hotel_id, status=status, priority=priority)

    def update_status(self, caller: CallerContext, request_id: str,
                      status: Optional[ServiceRequestStatus] = None,
                      assigned_staff_id: Optional[str] = UNSET) -> ServiceRequest:
        """
        Ad-hoc update of status and/or assignee

        No status precondition: any status may be set from any status.
        Moving to in_progress stamps started_at the first time, moving to
        completed stamps completed_at, leaving completed clears it.
        assigned_staff_id=None unassigns; omitting it leaves the assignee alone.
        """
        if not request_id:
            raise ValidationError("Request ID is required")
        if status is None and assigned_staff_id is UNSET:
            raise ValidationError("Nothing to update: provide status or assigned_staff_id")

        hotel_id = caller.hotel_id
        request = self.repository.get(hotel_id, request_id)
        if not request:
            raise NotFoundError("Service request not found or unauthorized")

        new_staff = None
        if assigned_staff_id is not UNSET and assigned_staff_id is not None:
            new_staff = self.repository.get_staff(hotel_id, assigned_staff_id)
            if not new_staff:
                raise InvalidStaffError()

        entity = ServiceRequestEntity(request)
        previous_status = entity.status
        previous_staff_id = entity.assigned_staff_id
        now = datetime.now()

        changes = {}
        if status is not None:
            changes.update(entity.status_changes(status, now))
        if assigned_staff_id is not UNSET:
            changes["assigned_staff_id"] = assigned_staff_id

        try:
            entity.apply(changes)
            self.analytics.record(hotel_id, ServiceRequestStatusUpdatedData(
                timestamp=now,
                request_id=request_id,
                previous_status=previous_status,
                new_status=entity.status,
                previous_staff_id=previous_staff_id,
                new_staff_id=entity.assigned_staff_id,
                updated_by=caller.user_id,
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to update request {request_id}")
            raise

        logger.info(
            f"Request {request_id} updated by {caller.user_id}: "
            f"status {previous_status} -> {changes.get('status', previous_status)}"
        )

        if new_staff and new_staff.id != previous_staff_id:
            self._publish_event(Event(
                event_type=EventType.SERVICE_REQUEST_REASSIGNED,
                timestamp=now,
                data={
                    "hotel_id": hotel_id,
                    "request_id": request_id,
                    "staff_id": new_staff.id,
                    "previous_staff_id": previous_staff_id,
                    "reassigned_by": caller.user_id,
                },
                source="lifecycle_service"
            ))

        return self.repository.get(hotel_id, request_id, with_details=True)

    def reassign(self, caller: CallerContext, request_id: str, new_staff_id: str,
                 reason: Optional[str] = None) -> ServiceRequest:
        """
        Move a request to another staff member without touching its status

        Raises:
            ValidationError: missing ids
            NotFoundError: request absent or in another hotel
            InvalidStaffError: target is not active staff of the same hotel
        """
        if not request_id or not new_staff_id:
            raise ValidationError("Request ID and new staff ID are required")

        hotel_id = caller.hotel_id
        request = self.repository.get(hotel_id, request_id)
        if not request:
            raise NotFoundError("Service request not found")

        new_staff = self.repository.get_staff(hotel_id, new_staff_id)
        if not new_staff:
            raise InvalidStaffError()

        previous_staff_id = request.assigned_staff_id
        now = datetime.now()
        try:
            request.assigned_staff_id = new_staff.id
            self.analytics.record(hotel_id, ServiceRequestReassignedData(
                timestamp=now,
                request_id=request_id,
                previous_staff_id=previous_staff_id,
                new_staff_id=new_staff.id,
                new_staff_name=new_staff.name,
                reassigned_by=caller.user_id,
                reason=reason or "No reason provided",
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to reassign request {request_id}")
            raise

        logger.info(
            f"Request {request_id} reassigned {previous_staff_id} -> {new_staff.id} by {caller.user_id}"
        )

        self._publish_event(Event(
            event_type=EventType.SERVICE_REQUEST_REASSIGNED,
            timestamp=now,
            data={
                "hotel_id": hotel_id,
                "request_id": request_id,
                "staff_id": new_staff.id,
                "previous_staff_id": previous_staff_id,
                "reassigned_by": caller.user_id,
            },
            source="lifecycle_service"
        ))

        return self.repository.get(hotel_id, request_id, with_details=True)
