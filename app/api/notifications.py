"""
Notification feed REST API endpoint.
"""

from typing import List

from fastapi import APIRouter, Depends

from app.api.dependencies import notification_center, require_user
from app.models.api_response import Notification
from app.models.user import CurrentUser

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=List[Notification])
async def drain_notifications(user: CurrentUser = Depends(require_user)) -> List[Notification]:
    """Return and clear the caller's pending notifications."""
    return notification_center.drain(user.id)
