"""
Staff assignment routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from guestdesk.database import get_db
from guestdesk.models.schemas import (
    AssignmentCreate, Reassignment, ServiceRequestResponse, StaffWorkloadResponse,
    AssignmentResponse, AvailableStaffResponse
)
from guestdesk.routers.common import http_error
from guestdesk.security.auth import require_staff
from guestdesk.security.context import CallerContext
from guestdesk.services.assignment_service import AssignmentEngine
from guestdesk.services.errors import ServiceRequestError
from guestdesk.services.lifecycle_service import RequestLifecycleController
from guestdesk.services.workload_service import WorkloadInspector

router = APIRouter(prefix="/staff/assignment", tags=["Staff assignment"])


@router.post("", response_model=AssignmentResponse)
def assign_request(
    data: AssignmentCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_staff)
):
    """Assign a pending request, to the preferred staff member or automatically"""
    try:
        request = AssignmentEngine(db).assign(
            caller, data.request_id,
            preferred_staff_id=data.preferred_staff_id,
            force_assign=data.force_assign,
        )
    except ServiceRequestError as e:
        raise http_error(e)

    return {
        "success": True,
        "message": "Request assigned successfully",
        "service_request": ServiceRequestResponse.model_validate(request),
    }


@router.get("", response_model=AvailableStaffResponse)
def list_available_staff(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_staff)
):
    """Staff of the hotel with their current workload"""
    try:
        workloads = WorkloadInspector(db).get_available_staff(caller.hotel_id)
    except ServiceRequestError as e:
        raise http_error(e)

    return {
        "success": True,
        "available_staff": [StaffWorkloadResponse.model_validate(w) for w in workloads],
    }


@router.patch("", response_model=AssignmentResponse)
def reassign_request(
    data: Reassignment,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_staff)
):
    """Hand a request over to another staff member"""
    try:
        request = RequestLifecycleController(db).reassign(
            caller, data.request_id, data.new_staff_id, reason=data.reason
        )
    except ServiceRequestError as e:
        raise http_error(e)

    return {
        "success": True,
        "message": "Request reassigned successfully",
        "service_request": ServiceRequestResponse.model_validate(request),
    }
