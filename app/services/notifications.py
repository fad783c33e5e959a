"""
User-facing notification feed.

Every failure the dashboard recovers from ends as a notification here rather
than an exception reaching the view. Notifications are queued per user, and
the API drains the caller's queue into its responses.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.models.api_response import Notification, NotificationLevel


logger = logging.getLogger(__name__)


class NotificationCenter:
    """
    In-process queues of pending notifications, keyed by user id.

    Notifications raised outside any user's request (startup load) are kept
    under ``None``.
    """

    def __init__(self, max_pending: int = 100):
        self._pending: Dict[Optional[str], List[Notification]] = {}
        self._max_pending = max_pending

    def push(
        self,
        level: NotificationLevel,
        message: str,
        user_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            level=level,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        queue = self._pending.setdefault(user_id, [])
        queue.append(notification)

        # Oldest notifications are dropped once nobody reads the feed
        if len(queue) > self._max_pending:
            del queue[: len(queue) - self._max_pending]

        logger.debug(f"Notification queued for {user_id}: {level.value}: {message}")
        return notification

    def success(self, message: str, user_id: Optional[str] = None) -> Notification:
        return self.push(NotificationLevel.SUCCESS, message, user_id)

    def error(self, message: str, user_id: Optional[str] = None) -> Notification:
        return self.push(NotificationLevel.ERROR, message, user_id)

    def pending(self, user_id: Optional[str] = None) -> List[Notification]:
        return list(self._pending.get(user_id, []))

    def drain(self, user_id: Optional[str] = None) -> List[Notification]:
        """Return and clear the pending notifications of one user."""
        return self._pending.pop(user_id, [])
