# Ontology Models
from guestdesk.models.ontology import (
    Hotel, Room, Service, User, ServiceRequest, AnalyticsEvent
)

__all__ = [
    'Hotel', 'Room', 'Service', 'User', 'ServiceRequest', 'AnalyticsEvent'
]
