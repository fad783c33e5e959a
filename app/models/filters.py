"""Filter and sort option models for the error list."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from .error import ErrorSeverity, ErrorStatus


class SortKey(str, Enum):
    """Sortable fields of the error list."""

    TIMESTAMP = "timestamp"
    SEVERITY = "severity"
    OCCURRENCES = "occurrences"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class FilterOptions(BaseModel):
    """Transient filter bar state. Unset values match every record."""

    search: str = ""
    severity: Optional[ErrorSeverity] = None
    status: Optional[ErrorStatus] = None
    system: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    assigned_to: Optional[str] = None
    tags: List[str] = []
