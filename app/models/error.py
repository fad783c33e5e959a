"""Error record data models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ErrorSeverity(str, Enum):
    """Ordinal urgency classification of an error."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self]


SEVERITY_RANK = {
    ErrorSeverity.CRITICAL: 4,
    ErrorSeverity.HIGH: 3,
    ErrorSeverity.MEDIUM: 2,
    ErrorSeverity.LOW: 1,
}


class ErrorStatus(str, Enum):
    """Lifecycle state of an error."""

    OPEN = "open"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        return self in (ErrorStatus.RESOLVED, ErrorStatus.CLOSED)


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """
    Strip tags, drop empty ones and duplicates, keep first-seen order.

    Raises:
        ValueError: If tags is not a list or tuple of strings
    """
    if tags is None:
        return []
    if not isinstance(tags, (list, tuple)):
        raise ValueError(f"tags must be a list of strings, got {type(tags).__name__}")

    seen: List[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValueError(f"tag must be a string, got {type(tag).__name__}")
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class ErrorRecord(BaseModel):
    """One tracked error entry, as read back from the record store."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    resolution: Optional[str] = None
    severity: ErrorSeverity
    status: ErrorStatus
    system: str = Field(min_length=1)
    error_code: Optional[str] = None
    stack_trace: Optional[str] = None
    image_url: Optional[str] = None
    timestamp: datetime
    last_occurrence: datetime
    resolved_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    tags: Tuple[str, ...] = ()
    occurrences: int = Field(default=1, ge=1)
    user_id: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        if value is None:
            return ()
        return tuple(normalize_tags(value))

    @field_validator("timestamp", "last_occurrence", "resolved_at", mode="after")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive values are taken to be UTC so every comparison is aware
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_timeline(self) -> "ErrorRecord":
        if self.last_occurrence < self.timestamp:
            raise ValueError("last_occurrence must not precede timestamp")
        if self.resolved_at is not None:
            if not self.status.is_terminal:
                raise ValueError("resolved_at is only set on resolved or closed errors")
            if self.resolved_at < self.timestamp:
                raise ValueError("resolved_at must not precede timestamp")
        return self


class ErrorCreate(BaseModel):
    """Fields sent to the store when inserting a record."""

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    resolution: Optional[str] = None
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    status: ErrorStatus = ErrorStatus.OPEN
    system: str = Field(min_length=1)
    error_code: Optional[str] = None
    stack_trace: Optional[str] = None
    image_url: Optional[str] = None
    resolved_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    tags: List[str] = []

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return normalize_tags(value)


class ErrorUpdate(BaseModel):
    """Partial replacement; only explicitly set fields reach the store."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    resolution: Optional[str] = None
    severity: Optional[ErrorSeverity] = None
    status: Optional[ErrorStatus] = None
    system: Optional[str] = Field(default=None, min_length=1)
    error_code: Optional[str] = None
    stack_trace: Optional[str] = None
    image_url: Optional[str] = None
    resolved_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        if value is None:
            return None
        return normalize_tags(value)


class ErrorStats(BaseModel):
    """Aggregate counts over a record set."""

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    open: int = 0
    investigating: int = 0
    resolved: int = 0
    closed: int = 0

    @classmethod
    def from_records(cls, records: Iterable[ErrorRecord]) -> "ErrorStats":
        counts = {field: 0 for field in cls.model_fields}
        for record in records:
            counts["total"] += 1
            counts[record.severity.value] += 1
            counts[record.status.value] += 1
        return cls(**counts)
