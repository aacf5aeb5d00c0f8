"""
Bulk operation processor
Applies one action to many requests of a hotel with per-item success/failure

Pre-flight checks (ids, action, action data) abort the whole batch before any write.
After that every item is independent: it is validated, updated and audited in its
own transaction, and a failure is recorded in `errors` without stopping the batch.
"""
from typing import List, Optional, Callable, Dict, Any
from dataclasses import dataclass, field
from datetime import datetime
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from guestdesk.config import settings
from guestdesk.domain.service_request import ServiceRequestEntity
from guestdesk.models.ontology import ServiceRequestStatus, Priority, User
from guestdesk.models.events import (
    EventType, AnalyticsEventType, BulkItemData, BulkOperationCompletedData
)
from guestdesk.security.context import CallerContext
from guestdesk.services.analytics_service import AnalyticsService
from guestdesk.services.errors import (
    ValidationError, NotFoundError, InvalidStaffError, ConflictOfStateError
)
from guestdesk.services.event_bus import event_bus, Event
from guestdesk.services.request_repository import ServiceRequestRepository

logger = logging.getLogger(__name__)


class BulkAction:
    ASSIGN = "assign"
    UPDATE_STATUS = "update_status"
    UPDATE_PRIORITY = "update_priority"
    COMPLETE = "complete"
    CANCEL = "cancel"

    ALL = (ASSIGN, UPDATE_STATUS, UPDATE_PRIORITY, COMPLETE, CANCEL)


DATASTORE_FAILURE = "Failed to update request"


@dataclass
class BulkItemResult:
    request_id: str
    success: bool
    data: Any = None


@dataclass
class BulkItemError:
    request_id: str
    error: str


@dataclass
class BulkOperationResult:
    """Outcome of one bulk call"""
    action: str
    total_requests: int
    results: List[BulkItemResult] = field(default_factory=list)
    errors: List[BulkItemError] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def summary(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "successful": self.successful,
            "failed": self.failed,
            "action": self.action,
        }


class BulkOperationProcessor:
    """Bulk operation processor"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.repository = ServiceRequestRepository(db)
        self.analytics = AnalyticsService(db)
        self._publish_event = event_publisher or event_bus.publish

    # ---------- bulk apply ----------

    def bulk_apply(self, caller: CallerContext, request_ids: List[str], action: str,
                   data: Optional[Dict[str, Any]] = None) -> BulkOperationResult:
        """
        Apply `action` to every request in `request_ids`

        Args:
            caller: acting staff member
            request_ids: non-empty list of request ids, all in the caller's hotel
            action: assign | update_status | update_priority | complete | cancel
            data: action data (assigned_staff_id, status, priority, reason)

        Raises:
            ValidationError: empty ids, unknown action, missing action data
            NotFoundError: some ids do not resolve in the caller's hotel
            InvalidStaffError: assign target is not staff of the hotel
        """
        data = data or {}
        hotel_id = caller.hotel_id

        if not request_ids:
            raise ValidationError("Request IDs array is required")
        if not action:
            raise ValidationError("Action is required")
        if action not in BulkAction.ALL:
            raise ValidationError("Invalid action")

        # Duplicated ids resolve to fewer rows and fail the whole call
        requests = self.repository.get_many(hotel_id, request_ids)
        if len(requests) != len(request_ids):
            raise NotFoundError("Some requests not found or unauthorized")

        staff = self._validate_action_data(hotel_id, action, data)
        reason = data.get("reason") or "Bulk operation"

        result = BulkOperationResult(action=action, total_requests=len(request_ids))
        for request_id in request_ids:
            entity = ServiceRequestEntity(requests[request_id])
            try:
                updated = self._apply_one(caller, entity, action, data, reason)
            except ConflictOfStateError as e:
                result.errors.append(BulkItemError(request_id=request_id, error=e.reason))
                continue
            except NotFoundError:
                logger.warning(f"Request {request_id} disappeared during bulk {action}")
                result.errors.append(BulkItemError(request_id=request_id, error=DATASTORE_FAILURE))
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error processing request {request_id} in bulk {action}: {e}")
                result.errors.append(BulkItemError(request_id=request_id, error=DATASTORE_FAILURE))
                continue

            result.results.append(BulkItemResult(request_id=request_id, success=True, data=updated))
            if action == BulkAction.ASSIGN:
                self._publish_event(Event(
                    event_type=EventType.SERVICE_REQUEST_ASSIGNED,
                    timestamp=datetime.now(),
                    data={
                        "hotel_id": hotel_id,
                        "request_id": request_id,
                        "staff_id": staff.id,
                        "assigned_by": caller.user_id,
                        "assignment_method": "bulk",
                    },
                    source="bulk_service"
                ))

        self._record_summary(caller, result, request_ids)

        logger.info(
            f"Bulk {action} by {caller.user_id} in hotel {hotel_id}: "
            f"{result.successful} succeeded, {result.failed} failed"
        )
        return result

    def _validate_action_data(self, hotel_id: str, action: str,
                              data: Dict[str, Any]) -> Optional[User]:
        if action == BulkAction.ASSIGN:
            staff_id = data.get("assigned_staff_id")
            if not staff_id:
                raise ValidationError("Assigned staff ID is required for assignment")
            staff = self.repository.get_staff(hotel_id, staff_id)
            if not staff:
                raise InvalidStaffError()
            return staff

        if action == BulkAction.UPDATE_STATUS:
            if not data.get("status"):
                raise ValidationError("Status is required for status update")
            try:
                ServiceRequestStatus(data["status"])
            except ValueError:
                raise ValidationError(f"Invalid status: {data['status']}")

        if action == BulkAction.UPDATE_PRIORITY:
            if not data.get("priority"):
                raise ValidationError("Priority is required for priority update")
            try:
                Priority(data["priority"])
            except ValueError:
                raise ValidationError(f"Invalid priority: {data['priority']}")

        return None

    def _apply_one(self, caller: CallerContext, entity: ServiceRequestEntity, action: str,
                   data: Dict[str, Any], reason: str):
        """Validate, update and audit one request in its own transaction"""
        now = datetime.now()
        previous = entity.snapshot()
        expected_status = None

        if action == BulkAction.ASSIGN:
            changes = entity.assignment_changes(data["assigned_staff_id"], now)
            expected_status = ServiceRequestStatus.PENDING
        elif action == BulkAction.COMPLETE:
            changes = entity.completion_changes(now)
            expected_status = ServiceRequestStatus.IN_PROGRESS
        elif action == BulkAction.UPDATE_STATUS:
            changes = entity.status_changes(data["status"], now)
        elif action == BulkAction.UPDATE_PRIORITY:
            changes = entity.priority_changes(data["priority"])
        else:
            changes = entity.status_changes(ServiceRequestStatus.CANCELLED, now)

        updated = self.repository.update(entity.hotel_id, entity.id, changes, expected_status=expected_status)
        if updated == 0:
            self.db.rollback()
            current = self.repository.get(entity.hotel_id, entity.id)
            if current is None or expected_status is None:
                raise NotFoundError()
            raise ConflictOfStateError(f"Request is {ServiceRequestEntity(current).status}, cannot {action}")

        self.analytics.record(entity.hotel_id, BulkItemData(
            timestamp=now,
            request_id=entity.id,
            action=action,
            performed_by=caller.user_id,
            previous_data=previous,
            new_data=changes,
            reason=reason,
        ))
        self.db.commit()

        return self.repository.get(entity.hotel_id, entity.id, with_details=True)

    def _record_summary(self, caller: CallerContext, result: BulkOperationResult,
                        request_ids: List[str]) -> None:
        try:
            self.analytics.record(caller.hotel_id, BulkOperationCompletedData(
                action=result.action,
                performed_by=caller.user_id,
                summary=result.summary(),
                request_ids=list(request_ids),
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to record bulk {result.action} summary")
            raise

    # ---------- history ----------

    def history(self, caller: CallerContext, limit: int = None, offset: int = 0) -> Dict[str, Any]:
        """
        Recent bulk operations of the caller's hotel, newest first

        Returns:
            {"bulk_operations": [...], "pagination": {"limit", "offset", "has_more"}}
        """
        if limit is None:
            limit = settings.BULK_HISTORY_DEFAULT_LIMIT
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        limit = min(limit, settings.BULK_HISTORY_MAX_LIMIT)

        events = self.analytics.list_events(
            caller.hotel_id, AnalyticsEventType.BULK_OPERATION_COMPLETED,
            limit=limit, offset=offset
        )

        users: Dict[str, Optional[User]] = {}
        operations = []
        for event in events:
            performed_by = (event.event_data or {}).get("performed_by")
            if performed_by and performed_by not in users:
                users[performed_by] = self.repository.get_user(performed_by)
            user = users.get(performed_by) if performed_by else None
            operations.append({
                "id": event.id,
                "hotel_id": event.hotel_id,
                "event_type": event.event_type,
                "event_data": event.event_data,
                "timestamp": event.timestamp,
                "performed_by": {"name": user.name, "email": user.email} if user else None,
            })

        return {
            "bulk_operations": operations,
            "pagination": {
                "limit": limit,
                "offset": offset,
                "has_more": len(events) == limit,
            },
        }
