"""API response data models."""

from datetime import datetime
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel

from .error import ErrorRecord, ErrorStats


class NotificationLevel(str, Enum):
    """Severity of a user-facing notification."""

    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    """User-visible, non-blocking message."""

    level: NotificationLevel
    message: str
    created_at: datetime


class ErrorListResponse(BaseModel):
    """Filtered and sorted view over the current record list."""

    records: List[ErrorRecord]
    total: int
    filtered: int
    stats: ErrorStats
    systems: List[str] = []
    assignees: List[str] = []
    tags: List[str] = []
    active_filters: int = 0
    notifications: List[Notification] = []


class FormErrorResponse(BaseModel):
    """Inline field errors from the record form."""

    detail: str
    field_errors: Dict[str, str]


class StatusResponse(BaseModel):
    """Plain acknowledgement."""

    status: str
    message: str
