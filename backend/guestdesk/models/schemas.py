"""
Pydantic schemas
API request / response validation
"""
from datetime import datetime
from typing import Optional, List, Any, Dict
from pydantic import BaseModel, Field, ConfigDict
from guestdesk.models.ontology import ServiceRequestStatus, Priority


# ============== Joined detail ==============

class GuestBrief(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class RoomBrief(BaseModel):
    id: str
    room_number: str
    room_type: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class ServiceBrief(BaseModel):
    id: str
    name: str
    category: str
    description: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class StaffBrief(BaseModel):
    id: str
    name: str
    email: str
    model_config = ConfigDict(from_attributes=True)


# ============== Service request Schemas ==============

class ServiceRequestResponse(BaseModel):
    id: str
    hotel_id: str
    room_id: Optional[str] = None
    guest_id: str
    service_id: str
    assigned_staff_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    priority: Priority
    status: ServiceRequestStatus
    requested_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    guest: Optional[GuestBrief] = None
    room: Optional[RoomBrief] = None
    service: Optional[ServiceBrief] = None
    assigned_staff: Optional[StaffBrief] = None
    model_config = ConfigDict(from_attributes=True)


class ServiceRequestUpdate(BaseModel):
    """Ad-hoc update; an explicit null assigned_staff_id unassigns"""
    request_id: str
    status: Optional[ServiceRequestStatus] = None
    assigned_staff_id: Optional[str] = None


# ============== Assignment Schemas ==============

class AssignmentCreate(BaseModel):
    request_id: str
    preferred_staff_id: Optional[str] = None
    force_assign: bool = False


class Reassignment(BaseModel):
    request_id: str
    new_staff_id: str
    reason: Optional[str] = Field(None, max_length=500)


class StaffWorkloadResponse(BaseModel):
    staff_id: str
    staff_name: str
    active_requests: int
    max_concurrent_requests: int
    is_available: bool
    last_assigned_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# ============== Bulk operation Schemas ==============

class BulkOperationData(BaseModel):
    assigned_staff_id: Optional[str] = None
    status: Optional[ServiceRequestStatus] = None
    priority: Optional[Priority] = None
    reason: Optional[str] = Field(None, max_length=500)


class BulkOperationCreate(BaseModel):
    request_ids: List[str]
    action: str
    data: Optional[BulkOperationData] = None


class BulkItemResultResponse(BaseModel):
    request_id: str
    success: bool
    data: Optional[ServiceRequestResponse] = None


class BulkItemErrorResponse(BaseModel):
    request_id: str
    error: str


class PerformedBy(BaseModel):
    name: str
    email: str


class BulkOperationHistoryItem(BaseModel):
    id: str
    hotel_id: str
    event_type: str
    event_data: Dict[str, Any]
    timestamp: datetime
    performed_by: Optional[PerformedBy] = None


class Pagination(BaseModel):
    limit: int
    offset: int
    has_more: bool


# ============== Response envelopes ==============

class AssignmentResponse(BaseModel):
    success: bool
    message: str
    service_request: ServiceRequestResponse


class AvailableStaffResponse(BaseModel):
    success: bool
    available_staff: List[StaffWorkloadResponse]


class ServiceRequestListResponse(BaseModel):
    success: bool
    service_requests: List[ServiceRequestResponse]


class ServiceRequestUpdateResponse(BaseModel):
    success: bool
    service_request: ServiceRequestResponse


class BulkOperationResponse(BaseModel):
    """errors is left unset, and omitted from the body, when every item succeeded"""
    success: bool
    message: str
    total_requests: int
    successful: int
    failed: int
    action: str
    results: List[BulkItemResultResponse]
    errors: Optional[List[BulkItemErrorResponse]] = None


class BulkOperationHistoryResponse(BaseModel):
    success: bool
    bulk_operations: List[BulkOperationHistoryItem]
    pagination: Pagination
