"""
Analytics / audit emitter
Appends typed event payloads to the AnalyticsEvent log and answers the few read queries built on it
"""
from typing import List, Optional, Dict
from datetime import datetime
import logging

from sqlalchemy.orm import Session

from guestdesk.models.ontology import AnalyticsEvent
from guestdesk.models.events import (
    BaseEventData, AnalyticsEventType, ASSIGNMENT_EVENT_TYPES
)

logger = logging.getLogger(__name__)

# Payload keys naming the staff member an assignment event binds
_STAFF_KEYS = {
    AnalyticsEventType.SERVICE_REQUEST_ASSIGNED.value: "assigned_staff_id",
    AnalyticsEventType.SERVICE_REQUEST_REASSIGNED.value: "new_staff_id",
}


class AnalyticsService:
    """Append-only audit log"""

    def __init__(self, db: Session):
        self.db = db

    def record(self, hotel_id: str, payload: BaseEventData) -> AnalyticsEvent:
        """
        Add an event to the current unit of work
        The caller commits it together with the change it describes
        """
        event_type = payload.event_type
        event = AnalyticsEvent(
            hotel_id=hotel_id,
            event_type=event_type.value,
            event_data=payload.to_dict(),
            timestamp=payload.timestamp,
        )
        self.db.add(event)
        logger.debug(f"Audit event {event_type.value} recorded for hotel {hotel_id}")
        return event

    def list_events(self, hotel_id: str,
                    event_type: Optional[AnalyticsEventType] = None,
                    limit: int = 50, offset: int = 0) -> List[AnalyticsEvent]:
        """Events of one hotel, newest first"""
        query = self.db.query(AnalyticsEvent).filter(AnalyticsEvent.hotel_id == hotel_id)
        if event_type:
            query = query.filter(AnalyticsEvent.event_type == AnalyticsEventType(event_type).value)
        return query.order_by(
            AnalyticsEvent.timestamp.desc(), AnalyticsEvent.id
        ).offset(offset).limit(limit).all()

    def last_assigned_at_by_staff(self, hotel_id: str) -> Dict[str, datetime]:
        """staff id -> timestamp of the most recent assignment, reassignment or bulk assign naming them"""
        events = self.db.query(AnalyticsEvent).filter(
            AnalyticsEvent.hotel_id == hotel_id,
            AnalyticsEvent.event_type.in_([t.value for t in ASSIGNMENT_EVENT_TYPES])
        ).all()

        result: Dict[str, datetime] = {}
        for event in events:
            staff_id = self._staff_id_of(event)
            if not staff_id:
                continue
            if staff_id not in result or event.timestamp > result[staff_id]:
                result[staff_id] = event.timestamp
        return result

    @staticmethod
    def _staff_id_of(event: AnalyticsEvent) -> Optional[str]:
        data = event.event_data or {}
        key = _STAFF_KEYS.get(event.event_type)
        if key:
            return data.get(key)
        # bulk_assign: the staff id is part of the applied update
        return (data.get("new_data") or {}).get("assigned_staff_id")
