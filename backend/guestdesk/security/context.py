"""
Caller identity passed explicitly into every core operation
"""
from dataclasses import dataclass
from typing import Optional

from guestdesk.models.ontology import UserRole, STAFF_ROLES


@dataclass(frozen=True)
class CallerContext:
    """Who is calling, with which role, on behalf of which hotel"""
    user_id: str
    role: UserRole
    hotel_id: Optional[str]

    @property
    def is_staff(self) -> bool:
        return UserRole(self.role) in STAFF_ROLES
