"""
Authentication boundary
Tokens are issued by the hotel auth service; here they are only decoded into a CallerContext
"""
import logging
from datetime import datetime, timedelta, UTC
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from guestdesk.config import settings
from guestdesk.database import get_db
from guestdesk.models.ontology import User, UserRole
from guestdesk.security.context import CallerContext
from guestdesk.services.errors import UnauthorizedError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthenticated(reason: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"kind": "unauthenticated", "reason": reason},
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user_id: str, role: UserRole, hotel_id: Optional[str] = None,
                        expires_minutes: Optional[int] = None) -> str:
    """Create a JWT (tests and tooling; end-user login lives in the auth service)"""
    expire = datetime.now(UTC) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode = {
        "sub": str(user_id),
        "role": role.value if isinstance(role, UserRole) else str(role),
        "exp": expire,
    }
    if hotel_id is not None:
        to_encode["hotel_id"] = hotel_id
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise _unauthenticated("Invalid authentication credentials")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Load the user named by the bearer token"""
    if credentials is None:
        raise _unauthenticated("Not authenticated")

    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise _unauthenticated("Invalid authentication credentials")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise _unauthenticated("User not found")
    if not user.is_active:
        raise _unauthenticated("Account disabled")

    return user


async def get_caller_context(current_user: User = Depends(get_current_user)) -> CallerContext:
    """Role and hotel always come from the stored user, never from token claims"""
    return CallerContext(
        user_id=current_user.id,
        role=current_user.role,
        hotel_id=current_user.hotel_id,
    )


def ensure_staff(caller: CallerContext) -> CallerContext:
    if not caller.is_staff or not caller.hotel_id:
        logger.warning(f"Rejected caller {caller.user_id} with role {caller.role} and hotel {caller.hotel_id}")
        raise UnauthorizedError("Hotel staff access required")
    return caller


async def require_staff(caller: CallerContext = Depends(get_caller_context)) -> CallerContext:
    """Dependency: hotel_staff / hotel_admin bound to a hotel"""
    try:
        return ensure_staff(caller)
    except UnauthorizedError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
