"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.db.session import get_db
from app.services.notifications import LoggingNotificationDispatcher, NotificationDispatcher
from app.services.scheduling import SchedulingService

# Security scheme
security = HTTPBearer(auto_error=False)

# Process-wide dispatcher; replaced via dependency_overrides in tests
_dispatcher = LoggingNotificationDispatcher()


async def get_current_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict | None:
    """Extract and decode the current JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Decoded token payload or None
    """
    if not credentials:
        return None

    payload = decode_access_token(credentials.credentials)
    return payload


async def get_professional_id(
    token: Annotated[dict | None, Depends(get_current_token)],
) -> str:
    """Get the professional the caller acts for.

    The tenant id only ever comes from the verified token, never from the
    request body or query string.

    Raises:
        HTTPException: If not authenticated or the token names no professional
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    professional_id = token.get("professional_id")
    if not professional_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token is not bound to a professional",
        )

    return str(professional_id)


def get_dispatcher() -> NotificationDispatcher:
    """Get the notification dispatcher."""
    return _dispatcher


def get_scheduling_service(
    session: Annotated[AsyncSession, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> SchedulingService:
    """Build a scheduling service for the request."""
    return SchedulingService(session, dispatcher=dispatcher)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
ProfessionalId = Annotated[str, Depends(get_professional_id)]
Scheduling = Annotated[SchedulingService, Depends(get_scheduling_service)]
