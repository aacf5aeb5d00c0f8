"""
Staff dashboard service request routes
"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from guestdesk.database import get_db
from guestdesk.models.ontology import ServiceRequestStatus, Priority
from guestdesk.models.schemas import (
    ServiceRequestResponse, ServiceRequestUpdate,
    ServiceRequestListResponse, ServiceRequestUpdateResponse
)
from guestdesk.routers.common import http_error
from guestdesk.security.auth import require_staff
from guestdesk.security.context import CallerContext
from guestdesk.services.errors import ServiceRequestError
from guestdesk.services.lifecycle_service import RequestLifecycleController, UNSET

router = APIRouter(prefix="/staff/service-requests", tags=["Service requests"])


@router.get("", response_model=ServiceRequestListResponse)
def list_service_requests(
    status: Optional[ServiceRequestStatus] = None,
    priority: Optional[Priority] = None,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_staff)
):
    """Requests of the hotel, urgent first, newest first"""
    requests = RequestLifecycleController(db).list_requests(caller, status=status, priority=priority)
    return {
        "success": True,
        "service_requests": [ServiceRequestResponse.model_validate(r) for r in requests],
    }


@router.patch("", response_model=ServiceRequestUpdateResponse)
def update_service_request(
    data: ServiceRequestUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_staff)
):
    """Set status and/or assignee without lifecycle preconditions"""
    assigned_staff_id = data.assigned_staff_id if "assigned_staff_id" in data.model_fields_set else UNSET
    try:
        request = RequestLifecycleController(db).update_status(
            caller, data.request_id,
            status=data.status,
            assigned_staff_id=assigned_staff_id,
        )
    except ServiceRequestError as e:
        raise http_error(e)

    return {
        "success": True,
        "service_request": ServiceRequestResponse.model_validate(request),
    }
