"""
Bulk operation routes
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from guestdesk.config import settings
from guestdesk.database import get_db
from guestdesk.models.schemas import (
    BulkOperationCreate, BulkItemResultResponse, BulkItemErrorResponse,
    BulkOperationHistoryItem, Pagination, ServiceRequestResponse,
    BulkOperationResponse, BulkOperationHistoryResponse
)
from guestdesk.routers.common import http_error
from guestdesk.security.auth import require_staff
from guestdesk.security.context import CallerContext
from guestdesk.services.bulk_service import BulkOperationProcessor
from guestdesk.services.errors import ServiceRequestError

router = APIRouter(prefix="/staff/bulk-operations", tags=["Bulk operations"])


@router.post("", response_model=BulkOperationResponse, response_model_exclude_unset=True)
def apply_bulk_operation(
    data: BulkOperationCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_staff)
):
    """Apply one action to many requests; per-item failures are reported, not raised"""
    action_data = data.data.model_dump(mode="json", exclude_none=True) if data.data else {}
    try:
        result = BulkOperationProcessor(db).bulk_apply(caller, data.request_ids, data.action, action_data)
    except ServiceRequestError as e:
        raise http_error(e)

    response = {
        "success": True,
        "message": f"Bulk {result.action} completed",
        **result.summary(),
        "results": [
            BulkItemResultResponse(
                request_id=r.request_id,
                success=r.success,
                data=ServiceRequestResponse.model_validate(r.data) if r.data is not None else None,
            )
            for r in result.results
        ],
    }
    if result.failed > 0:
        response["errors"] = [
            BulkItemErrorResponse(request_id=e.request_id, error=e.error) for e in result.errors
        ]
    return BulkOperationResponse(**response)


@router.get("", response_model=BulkOperationHistoryResponse)
def list_bulk_operations(
    limit: int = Query(settings.BULK_HISTORY_DEFAULT_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_staff)
):
    """Bulk operation history of the hotel, newest first"""
    try:
        history = BulkOperationProcessor(db).history(caller, limit=limit, offset=offset)
    except ServiceRequestError as e:
        raise http_error(e)

    return {
        "success": True,
        "bulk_operations": [BulkOperationHistoryItem(**op) for op in history["bulk_operations"]],
        "pagination": Pagination(**history["pagination"]),
    }
