"""
Event handlers - notify staff when a request is assigned or reassigned to them
Run after the publishing transaction has committed; failures are logged and never reach the caller
"""
from typing import Callable
import logging

from guestdesk.database import SessionLocal
from guestdesk.models.events import EventType
from guestdesk.models.ontology import ServiceRequest, User
from guestdesk.notification.channel import NotificationChannelRegistry
from guestdesk.services.event_bus import event_bus, Event

logger = logging.getLogger(__name__)


class EventHandlers:
    """
    Event handler set

    Injectable for tests:
    - db_session_factory: database session factory
    - registry: notification channel registry
    """

    def __init__(self, db_session_factory: Callable = None,
                 registry: NotificationChannelRegistry = None):
        self._db_session_factory = db_session_factory or SessionLocal
        self._registry = registry or NotificationChannelRegistry()
        self._registered = False

    def _get_db(self):
        return self._db_session_factory()

    def handle_request_assigned(self, event: Event) -> None:
        """Tell the assignee a request is now theirs"""
        self._notify_assignee(event, "New service request assigned")

    def handle_request_reassigned(self, event: Event) -> None:
        """Tell the new assignee a request was handed over to them"""
        self._notify_assignee(event, "Service request reassigned to you")

    def _notify_assignee(self, event: Event, subject: str) -> None:
        data = event.data
        request_id = data.get("request_id")
        staff_id = data.get("staff_id")
        if not request_id or not staff_id:
            logger.warning(f"Invalid {event.event_type} event: missing request_id or staff_id")
            return

        db = self._get_db()
        try:
            request = db.query(ServiceRequest).filter(ServiceRequest.id == request_id).first()
            staff = db.query(User).filter(User.id == staff_id).first()
            if not request or not staff:
                logger.warning(f"Skip notification for request {request_id}: request or staff missing")
                return

            room = f" (room {request.room.room_number})" if request.room else ""
            content = f"{request.title}{room}, priority {request.priority.value}"
            delivered = self._registry.broadcast(
                recipient=staff.id,
                subject=subject,
                content=content,
                extra={
                    "request_id": request.id,
                    "hotel_id": request.hotel_id,
                    "email": staff.email,
                    "event_type": str(event.event_type),
                },
            )
            if delivered == 0:
                logger.warning(f"No notification channel delivered {event.event_type} to {staff.id}")
        finally:
            db.close()

    def register_handlers(self, event_bus_instance=None) -> None:
        """Subscribe all handlers"""
        if self._registered:
            return

        bus = event_bus_instance or event_bus
        bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, self.handle_request_assigned)
        bus.subscribe(EventType.SERVICE_REQUEST_REASSIGNED, self.handle_request_reassigned)

        self._registered = True
        logger.info("Event handlers registered successfully")

    def unregister_handlers(self, event_bus_instance=None) -> None:
        """Unsubscribe all handlers (tests)"""
        bus = event_bus_instance or event_bus
        bus.unsubscribe(EventType.SERVICE_REQUEST_ASSIGNED, self.handle_request_assigned)
        bus.unsubscribe(EventType.SERVICE_REQUEST_REASSIGNED, self.handle_request_reassigned)

        self._registered = False
        logger.info("Event handlers unregistered")


# Global event handler instance
event_handlers = EventHandlers()


def register_event_handlers():
    """Register all event handlers (called at startup)"""
    event_handlers.register_handlers()
