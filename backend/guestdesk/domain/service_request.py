"""
ServiceRequest domain entity
Wraps the ORM row with the lifecycle state machine and computes the column changes of each transition
"""
from typing import Optional, Dict, Any, TYPE_CHECKING
from datetime import datetime
import logging

from guestdesk.domain.state_machine import StateMachine, StateMachineConfig, StateTransition
from guestdesk.models.ontology import ServiceRequestStatus, Priority
from guestdesk.services.errors import ConflictOfStateError

if TYPE_CHECKING:
    from guestdesk.models.ontology import ServiceRequest

logger = logging.getLogger(__name__)


class RequestState(str):
    PENDING = ServiceRequestStatus.PENDING.value
    IN_PROGRESS = ServiceRequestStatus.IN_PROGRESS.value
    COMPLETED = ServiceRequestStatus.COMPLETED.value
    CANCELLED = ServiceRequestStatus.CANCELLED.value


def _create_request_state_machine(initial_status: str) -> StateMachine:
    return StateMachine(
        config=StateMachineConfig(
            name="ServiceRequest",
            states=[RequestState.PENDING, RequestState.IN_PROGRESS,
                    RequestState.COMPLETED, RequestState.CANCELLED],
            transitions=[
                StateTransition(RequestState.PENDING, RequestState.IN_PROGRESS, "assign"),
                StateTransition(RequestState.IN_PROGRESS, RequestState.COMPLETED, "complete"),
                StateTransition(RequestState.PENDING, RequestState.CANCELLED, "cancel"),
                StateTransition(RequestState.IN_PROGRESS, RequestState.CANCELLED, "cancel"),
            ],
            initial_state=initial_status,
            terminal_states=[RequestState.COMPLETED, RequestState.CANCELLED],
        )
    )


class ServiceRequestEntity:
    """
    Strict transitions (assign, complete) consult the state machine and raise
    ConflictOfStateError when the current status does not allow them.
    Ad-hoc changes (status_changes, priority_changes) are deliberately unchecked:
    the staff dashboard may set any status from any status.

    *_changes methods return the column values to write; callers persist them
    either through a conditional update or by apply().
    """

    def __init__(self, orm_model: "ServiceRequest"):
        self._orm_model = orm_model
        self._state_machine = _create_request_state_machine(self.status)

    @property
    def id(self) -> str:
        return self._orm_model.id

    @property
    def hotel_id(self) -> str:
        return self._orm_model.hotel_id

    @property
    def status(self) -> str:
        return self._orm_model.status.value if self._orm_model.status else RequestState.PENDING

    @property
    def priority(self) -> str:
        return self._orm_model.priority.value if self._orm_model.priority else Priority.MEDIUM.value

    @property
    def assigned_staff_id(self) -> Optional[str]:
        return self._orm_model.assigned_staff_id

    @property
    def service_category(self) -> str:
        service = self._orm_model.service
        return service.category if service else ""

    @property
    def orm_model(self) -> "ServiceRequest":
        return self._orm_model

    def is_pending(self) -> bool:
        return self.status == RequestState.PENDING

    def is_terminal(self) -> bool:
        return self._state_machine.is_terminal()

    def snapshot(self) -> Dict[str, Any]:
        """Fields a bulk operation may overwrite, as they are now"""
        return {
            "status": self.status,
            "priority": self.priority,
            "assigned_staff_id": self.assigned_staff_id,
        }

    # ---------- strict transitions ----------

    def assignment_changes(self, staff_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        if not self._state_machine.can_transition_to(RequestState.IN_PROGRESS, "assign"):
            raise ConflictOfStateError(f"Request is {self.status}, cannot assign")
        changes = {
            "assigned_staff_id": staff_id,
            "status": ServiceRequestStatus.IN_PROGRESS,
        }
        if self._orm_model.started_at is None:
            changes["started_at"] = now or datetime.now()
        return changes

    def completion_changes(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        if not self._state_machine.can_transition_to(RequestState.COMPLETED, "complete"):
            raise ConflictOfStateError(f"Request is {self.status}, cannot complete")
        return {
            "status": ServiceRequestStatus.COMPLETED,
            "completed_at": now or datetime.now(),
        }

    # ---------- ad-hoc changes ----------

    def status_changes(self, status: ServiceRequestStatus, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now()
        status = ServiceRequestStatus(status)
        changes: Dict[str, Any] = {"status": status}
        if status == ServiceRequestStatus.IN_PROGRESS and self._orm_model.started_at is None:
            changes["started_at"] = now
        if status == ServiceRequestStatus.COMPLETED:
            changes["completed_at"] = now
        elif self._orm_model.completed_at is not None:
            changes["completed_at"] = None
        return changes

    def priority_changes(self, priority: Priority) -> Dict[str, Any]:
        return {"priority": Priority(priority)}

    def apply(self, changes: Dict[str, Any]) -> None:
        """Write changes onto the ORM row and resync the state machine"""
        for key, value in changes.items():
            setattr(self._orm_model, key, value)
        if "status" in changes:
            self._state_machine.reset(self.status)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "hotel_id": self.hotel_id,
            "status": self.status,
            "priority": self.priority,
            "assigned_staff_id": self.assigned_staff_id,
            "is_pending": self.is_pending(),
            "is_terminal": self.is_terminal(),
        }
