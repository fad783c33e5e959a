"""
Shared service instances and request dependencies for the API routers.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from app.models.user import CurrentUser
from app.services.auth_client import AuthClient, AuthError, get_auth_client
from app.services.error_repository import ErrorRepository
from app.services.exporter import ExportService
from app.services.notifications import NotificationCenter
from app.services.record_form import RecordFormService
from app.services.record_store import get_record_store

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Process-wide services; the repository is the only owner of the record list
notification_center = NotificationCenter()
record_store = get_record_store()
auth_client: AuthClient = get_auth_client()
error_repository = ErrorRepository(record_store, notification_center)
form_service = RecordFormService(error_repository, record_store)
export_service = ExportService(
    notification_center,
    date_format=settings.export_date_format,
    report_title=settings.report_title,
)


async def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Bearer token from the Authorization header, if any."""
    if credentials is None:
        return None
    return credentials.credentials


async def get_current_user(
    access_token: Optional[str] = Depends(get_access_token),
) -> Optional[CurrentUser]:
    """
    Resolve the bearer token to the signed-in user.

    Returns:
        CurrentUser, or None when unauthenticated

    Raises:
        HTTPException: If the auth service is unavailable
    """
    if not access_token:
        return None

    try:
        return await auth_client.get_user(access_token)
    except AuthError as e:
        logger.error(f"Auth service unavailable: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail="Authentication service unavailable")


async def require_user(
    user: Optional[CurrentUser] = Depends(get_current_user),
) -> CurrentUser:
    """
    Reject requests without a signed-in user.

    Raises:
        HTTPException: 401 when unauthenticated
    """
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
