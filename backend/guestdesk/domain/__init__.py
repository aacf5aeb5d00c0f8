# Domain entities
from guestdesk.domain.service_request import ServiceRequestEntity

__all__ = ['ServiceRequestEntity']
