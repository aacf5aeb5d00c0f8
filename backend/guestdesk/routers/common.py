"""
Shared router helpers
"""
from fastapi import HTTPException

from guestdesk.services.errors import ServiceRequestError


def http_error(e: ServiceRequestError) -> HTTPException:
    """Map a service error onto its HTTP status with a {kind, reason} body"""
    return HTTPException(status_code=e.status_code, detail=e.to_dict())
