"""
Service error taxonomy
Every failure carries a machine-readable kind, a human-readable reason and the HTTP status routers map it to
"""
from typing import Dict


class ServiceRequestError(Exception):
    """Base class of all staff-assignment / lifecycle errors"""
    kind = "error"
    status_code = 400
    default_reason = "Request failed"

    def __init__(self, reason: str = None):
        self.reason = reason or self.default_reason
        super().__init__(self.reason)

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "reason": self.reason}


class UnauthorizedError(ServiceRequestError):
    kind = "unauthorized"
    status_code = 403
    default_reason = "Unauthorized"


class NotFoundError(ServiceRequestError):
    kind = "not_found"
    status_code = 404
    default_reason = "Service request not found"


class ValidationError(ServiceRequestError):
    kind = "validation_error"
    status_code = 400
    default_reason = "Invalid input"


class ConflictOfStateError(ServiceRequestError):
    """The request is not in the status the transition requires"""
    kind = "conflict_of_state"
    status_code = 409
    default_reason = "Request is not in a valid state for this operation"


class AlreadyAssignedError(ConflictOfStateError):
    """Assign on a request that is no longer pending; reported like a missing request"""
    kind = "already_assigned"
    status_code = 404
    default_reason = "Service request not found or already assigned"


class NoStaffAvailableError(ServiceRequestError):
    kind = "no_staff_available"
    status_code = 400
    default_reason = "No staff available for assignment"


class StaffUnavailableError(ServiceRequestError):
    kind = "staff_unavailable"
    status_code = 400
    default_reason = "Preferred staff is not available"


class InvalidStaffError(ServiceRequestError):
    kind = "invalid_staff"
    status_code = 404
    default_reason = "Staff member not found or invalid"
