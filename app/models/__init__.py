"""Data models for the Error Tracker."""

from .api_response import (
    ErrorListResponse,
    FormErrorResponse,
    Notification,
    NotificationLevel,
    StatusResponse,
)
from .error import (
    SEVERITY_RANK,
    ErrorCreate,
    ErrorRecord,
    ErrorSeverity,
    ErrorStats,
    ErrorStatus,
    ErrorUpdate,
    normalize_tags,
)
from .filters import FilterOptions, SortDirection, SortKey
from .user import AuthSession, CurrentUser, SignInRequest, SignUpRequest

__all__ = [
    # Error models
    "ErrorSeverity",
    "ErrorStatus",
    "SEVERITY_RANK",
    "ErrorRecord",
    "ErrorCreate",
    "ErrorUpdate",
    "ErrorStats",
    "normalize_tags",
    # Filter models
    "FilterOptions",
    "SortKey",
    "SortDirection",
    # User models
    "CurrentUser",
    "AuthSession",
    "SignInRequest",
    "SignUpRequest",
    # API response models
    "Notification",
    "NotificationLevel",
    "ErrorListResponse",
    "FormErrorResponse",
    "StatusResponse",
]
