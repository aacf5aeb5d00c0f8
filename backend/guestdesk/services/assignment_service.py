"""
Assignment engine - binds a pending service request to a staff member
Manual (preferred staff) or automatic (workload + priority heuristic)
"""
from typing import List, Optional, Callable
from datetime import datetime
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from guestdesk.domain.service_request import ServiceRequestEntity
from guestdesk.models.ontology import ServiceRequest, ServiceRequestStatus, Priority
from guestdesk.models.events import EventType, ServiceRequestAssignedData
from guestdesk.security.context import CallerContext
from guestdesk.services.analytics_service import AnalyticsService
from guestdesk.services.errors import (
    ValidationError, NotFoundError, AlreadyAssignedError,
    NoStaffAvailableError, StaffUnavailableError
)
from guestdesk.services.event_bus import event_bus, Event
from guestdesk.services.request_repository import ServiceRequestRepository
from guestdesk.services.workload_service import WorkloadInspector, StaffWorkload

logger = logging.getLogger(__name__)

URGENT_PRIORITIES = (Priority.HIGH, Priority.URGENT)


def select_optimal_staff(workloads: List[StaffWorkload], priority: Priority) -> str:
    """
    Automatic assignment

    Candidates are the available staff ranked by active requests, then name.
    High/urgent requests take the top-ranked candidate. Other requests take
    the first by name among the candidates sharing the lowest workload.

    Returns:
        id of the chosen staff member
    """
    eligible = [w for w in workloads if w.is_available]
    if not eligible:
        raise NoStaffAvailableError("No eligible staff available")

    eligible.sort(key=lambda w: (w.active_requests, w.staff_name))

    if Priority(priority) in URGENT_PRIORITIES:
        return eligible[0].staff_id

    lowest_workload = min(w.active_requests for w in eligible)
    least_loaded = [w for w in eligible if w.active_requests == lowest_workload]
    return least_loaded[0].staff_id


class AssignmentEngine:
    """Assignment engine"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.repository = ServiceRequestRepository(db)
        self.workloads = WorkloadInspector(db)
        self.analytics = AnalyticsService(db)
        # Injectable event publisher, tests pass a no-op
        self._publish_event = event_publisher or event_bus.publish

    def assign(self, caller: CallerContext, request_id: str,
               preferred_staff_id: Optional[str] = None,
               force_assign: bool = False) -> ServiceRequest:
        """
        Assign a pending request

        Args:
            caller: acting staff member
            request_id: request to assign
            preferred_staff_id: explicit assignee; automatic selection when omitted
            force_assign: accept the preferred staff even when at capacity

        Returns:
            the updated request with guest/room/service/assigned staff loaded
        """
        if not request_id:
            raise ValidationError("Request ID is required")

        hotel_id = caller.hotel_id
        request = self.repository.get(hotel_id, request_id)
        if not request:
            raise NotFoundError("Service request not found")

        entity = ServiceRequestEntity(request)
        if not entity.is_pending():
            raise AlreadyAssignedError()

        workloads = self.workloads.get_available_staff(hotel_id)
        if not workloads:
            raise NoStaffAvailableError()

        if preferred_staff_id:
            preferred = next((w for w in workloads if w.staff_id == preferred_staff_id), None)
            if not preferred or not (preferred.is_available or force_assign):
                raise StaffUnavailableError()
            staff = preferred
            method = "manual"
        else:
            chosen_id = select_optimal_staff(workloads, entity.priority)
            staff = next(w for w in workloads if w.staff_id == chosen_id)
            method = "automatic"

        now = datetime.now()
        changes = entity.assignment_changes(staff.staff_id, now)
        try:
            updated = self.repository.update(
                hotel_id, request_id, changes, expected_status=ServiceRequestStatus.PENDING
            )
            if updated == 0:
                # Someone else assigned it between our read and our write
                self.db.rollback()
                raise AlreadyAssignedError()

            self.analytics.record(hotel_id, ServiceRequestAssignedData(
                timestamp=now,
                request_id=request_id,
                assigned_staff_id=staff.staff_id,
                assigned_staff_name=staff.staff_name,
                assigned_by=caller.user_id,
                assignment_method=method,
                priority=entity.priority,
                service_category=entity.service_category,
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to assign request {request_id}")
            raise

        logger.info(
            f"Request {request_id} assigned to {staff.staff_name} ({staff.staff_id}) "
            f"by {caller.user_id}, method={method}, priority={entity.priority}"
        )

        self._publish_event(Event(
            event_type=EventType.SERVICE_REQUEST_ASSIGNED,
            timestamp=now,
            data={
                "hotel_id": hotel_id,
                "request_id": request_id,
                "staff_id": staff.staff_id,
                "assigned_by": caller.user_id,
                "assignment_method": method,
            },
            source="assignment_service"
        ))

        return self.repository.get(hotel_id, request_id, with_details=True)
