"""
Workload inspector - staff availability derived from active requests
Recomputed on every call, never cached
"""
from typing import List, Optional
from dataclasses import dataclass, asdict
from datetime import datetime
import logging

from sqlalchemy.orm import Session

from guestdesk.config import settings
from guestdesk.services.request_repository import ServiceRequestRepository
from guestdesk.services.analytics_service import AnalyticsService
from guestdesk.services.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class StaffWorkload:
    """Workload of one staff member"""
    staff_id: str
    staff_name: str
    active_requests: int
    max_concurrent_requests: int
    is_available: bool
    last_assigned_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        result = asdict(self)
        result["last_assigned_at"] = self.last_assigned_at.isoformat() if self.last_assigned_at else None
        return result


class WorkloadInspector:
    """Workload inspector"""

    def __init__(self, db: Session, max_concurrent_requests: int = None):
        self.db = db
        self.repository = ServiceRequestRepository(db)
        self.analytics = AnalyticsService(db)
        self.max_concurrent_requests = max_concurrent_requests or settings.MAX_CONCURRENT_REQUESTS

    def get_available_staff(self, hotel_id: str) -> List[StaffWorkload]:
        """
        All staff of the hotel with their current workload

        Args:
            hotel_id: tenant id

        Returns:
            one StaffWorkload per staff member, ordered by name then id
        """
        if not hotel_id:
            raise ValidationError("Hotel ID is required")

        staff = self.repository.list_staff(hotel_id)
        active_counts = self.repository.count_active_by_staff(hotel_id)
        last_assigned = self.analytics.last_assigned_at_by_staff(hotel_id)

        workloads = []
        for member in staff:
            active = active_counts.get(member.id, 0)
            workloads.append(StaffWorkload(
                staff_id=member.id,
                staff_name=member.name,
                active_requests=active,
                max_concurrent_requests=self.max_concurrent_requests,
                is_available=active < self.max_concurrent_requests,
                last_assigned_at=last_assigned.get(member.id),
            ))
        return workloads
