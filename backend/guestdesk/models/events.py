"""
Domain events
Two kinds live here:
- EventType: in-process topics published on the event bus after a commit
- AnalyticsEventType + *Data: the tagged union persisted to the audit log (AnalyticsEvent)
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Dict, Any, List


class EventType(str, Enum):
    """Event bus topics"""
    SERVICE_REQUEST_ASSIGNED = "service_request.assigned"
    SERVICE_REQUEST_REASSIGNED = "service_request.reassigned"


class AnalyticsEventType(str, Enum):
    """Audit log event tags"""
    SERVICE_REQUEST_ASSIGNED = "service_request_assigned"
    SERVICE_REQUEST_REASSIGNED = "service_request_reassigned"
    SERVICE_REQUEST_STATUS_UPDATED = "service_request_status_updated"
    BULK_ASSIGN = "bulk_assign"
    BULK_UPDATE_STATUS = "bulk_update_status"
    BULK_UPDATE_PRIORITY = "bulk_update_priority"
    BULK_COMPLETE = "bulk_complete"
    BULK_CANCEL = "bulk_cancel"
    BULK_OPERATION_COMPLETED = "bulk_operation_completed"

    @classmethod
    def for_bulk_action(cls, action: str) -> "AnalyticsEventType":
        return cls(f"bulk_{action}")


# Audit events that bind a staff member to a request
ASSIGNMENT_EVENT_TYPES = (
    AnalyticsEventType.SERVICE_REQUEST_ASSIGNED,
    AnalyticsEventType.SERVICE_REQUEST_REASSIGNED,
    AnalyticsEventType.BULK_ASSIGN,
)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    return value


@dataclass
class BaseEventData:
    """Base class of event payloads"""
    timestamp: datetime = field(default_factory=datetime.now)

    # Overridden by each audit payload
    event_type = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dict"""
        return _serialize(asdict(self))


@dataclass
class ServiceRequestAssignedData(BaseEventData):
    """A pending request was bound to a staff member"""
    event_type = AnalyticsEventType.SERVICE_REQUEST_ASSIGNED

    request_id: str = ""
    assigned_staff_id: str = ""
    assigned_staff_name: str = ""
    assigned_by: str = ""
    assignment_method: str = "manual"  # manual | automatic
    priority: str = ""
    service_category: str = ""


@dataclass
class ServiceRequestReassignedData(BaseEventData):
    """A request moved from one staff member to another"""
    event_type = AnalyticsEventType.SERVICE_REQUEST_REASSIGNED

    request_id: str = ""
    previous_staff_id: Optional[str] = None
    new_staff_id: str = ""
    new_staff_name: str = ""
    reassigned_by: str = ""
    reason: str = "No reason provided"


@dataclass
class ServiceRequestStatusUpdatedData(BaseEventData):
    """Ad-hoc status / assignee update from the staff dashboard"""
    event_type = AnalyticsEventType.SERVICE_REQUEST_STATUS_UPDATED

    request_id: str = ""
    previous_status: str = ""
    new_status: str = ""
    previous_staff_id: Optional[str] = None
    new_staff_id: Optional[str] = None
    updated_by: str = ""


@dataclass
class BulkItemData(BaseEventData):
    """One request processed by a bulk operation"""
    request_id: str = ""
    action: str = ""
    performed_by: str = ""
    previous_data: Dict[str, Any] = field(default_factory=dict)
    new_data: Dict[str, Any] = field(default_factory=dict)
    reason: str = "Bulk operation"

    @property
    def event_type(self) -> AnalyticsEventType:
        return AnalyticsEventType.for_bulk_action(self.action)


@dataclass
class BulkOperationCompletedData(BaseEventData):
    """Summary of a whole bulk operation"""
    event_type = AnalyticsEventType.BULK_OPERATION_COMPLETED

    action: str = ""
    performed_by: str = ""
    summary: Dict[str, Any] = field(default_factory=dict)
    request_ids: List[str] = field(default_factory=list)
