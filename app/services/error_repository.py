"""
Error repository: the single owner of the in-memory error list.

The repository wraps the record store client, maps raw rows to ErrorRecord,
keeps derived statistics, and follows a write-then-resync policy: every
successful create, update or delete is followed by a full re-read before the
operation returns. The cached list is only ever replaced wholesale, and only
by a fetch that mapped every row successfully.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from app.models.error import ErrorCreate, ErrorRecord, ErrorStats, ErrorUpdate
from app.models.user import CurrentUser
from app.services.notifications import NotificationCenter
from app.services.record_store import RecordStoreClient, RecordStoreError
from app.utils.logging import get_logger, log_error_with_context, log_record_event


logger = get_logger(__name__)

# Domain field name -> store column name
FIELD_TO_COLUMN = {
    "title": "title",
    "description": "description",
    "resolution": "resolution",
    "severity": "severity",
    "status": "status",
    "system": "system",
    "error_code": "error_code",
    "stack_trace": "stack_trace",
    "image_url": "image_url",
    "resolved_at": "resolved_at",
    "assigned_to": "assigned_to",
    "tags": "tags",
}

REQUIRED_COLUMNS = (
    "id", "title", "description", "severity", "status", "system",
    "timestamp", "last_occurrence",
)


class RowMappingError(Exception):
    """Raised when a store row cannot be mapped to an ErrorRecord."""
    pass


def row_to_error(row: Dict[str, Any]) -> ErrorRecord:
    """
    Convert a store row to an ErrorRecord.

    Missing optional columns map to absent values. Missing required columns
    or values that violate the record invariants raise RowMappingError.
    Null occurrences map to 1 and null tags to no tags, matching the
    store's column defaults.

    Args:
        row: Row as returned by the record store

    Returns:
        ErrorRecord

    Raises:
        RowMappingError: If the row is incomplete or invalid
    """
    missing = [column for column in REQUIRED_COLUMNS if row.get(column) is None]
    if missing:
        raise RowMappingError(
            f"Row {row.get('id', '<unknown>')} is missing columns: {', '.join(missing)}"
        )

    occurrences = row.get("occurrences")
    try:
        return ErrorRecord(
            id=str(row["id"]),
            title=row["title"],
            description=row["description"],
            resolution=row.get("resolution"),
            severity=row["severity"],
            status=row["status"],
            system=row["system"],
            error_code=row.get("error_code"),
            stack_trace=row.get("stack_trace"),
            image_url=row.get("image_url"),
            timestamp=row["timestamp"],
            last_occurrence=row["last_occurrence"],
            resolved_at=row.get("resolved_at"),
            assigned_to=row.get("assigned_to"),
            tags=row.get("tags") or (),
            occurrences=1 if occurrences is None else occurrences,
            user_id=row.get("user_id"),
        )
    except ValidationError as e:
        raise RowMappingError(f"Row {row['id']} is invalid: {e}") from e


def payload_to_row(payload: Union[ErrorCreate, ErrorUpdate]) -> Dict[str, Any]:
    """
    Convert a create or update payload to store columns.

    For updates only the fields explicitly set on the payload are included,
    so the store replaces exactly that subset. A payload that moves a record
    to open or investigating always clears ``resolved_at``.
    """
    exclude_unset = isinstance(payload, ErrorUpdate)
    data = payload.model_dump(mode="json", exclude_unset=exclude_unset)
    if payload.status is not None and not payload.status.is_terminal:
        data["resolved_at"] = None
    return {FIELD_TO_COLUMN[field]: value for field, value in data.items()}


class ErrorRepository:
    """
    Owner of the cached error list.

    Provides:
    - list(): full re-read of the store
    - create / update / delete: writes followed by a full re-read
    - stats: aggregate counts of the current list
    """

    def __init__(
        self,
        store: Optional[RecordStoreClient] = None,
        notifications: Optional[NotificationCenter] = None,
    ):
        """
        Initialize the repository.

        Args:
            store: Record store client. If None, the global client is used.
            notifications: Notification feed. If None, a private one is created.
        """
        if store is None:
            from app.services.record_store import get_record_store
            store = get_record_store()

        self._store = store
        self.notifications = notifications or NotificationCenter()
        self._records: Tuple[ErrorRecord, ...] = ()
        self._stats = ErrorStats()
        self.loaded_at: Optional[datetime] = None

    @property
    def records(self) -> Tuple[ErrorRecord, ...]:
        """Records from the last successful fetch, newest first."""
        return self._records

    @property
    def stats(self) -> ErrorStats:
        """Statistics over the last successful fetch."""
        return self._stats

    def get(self, error_id: str) -> Optional[ErrorRecord]:
        """Look up a record in the current list."""
        for record in self._records:
            if record.id == error_id:
                return record
        return None

    async def list(
        self,
        access_token: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[ErrorRecord, ...]:
        """
        Re-read every record from the store.

        On failure the previous list and stats are kept and an error
        notification is queued for ``user_id``.

        Returns:
            The current record list
        """
        try:
            rows = await self._store.select_all(access_token)
            records = tuple(row_to_error(row) for row in rows)
        except (RecordStoreError, RowMappingError) as e:
            log_error_with_context(
                logger, "Failed to load error records", e, operation="list", user_id=user_id
            )
            self.notifications.error("Failed to load errors", user_id)
            return self._records

        self._records = records
        self._stats = ErrorStats.from_records(records)
        self.loaded_at = datetime.now()
        logger.debug(f"Loaded {len(records)} error records")
        return self._records

    async def create(
        self,
        payload: ErrorCreate,
        user: Optional[CurrentUser],
        access_token: Optional[str] = None,
    ) -> Optional[ErrorRecord]:
        """
        Insert a record owned by the current user, then re-read the list.

        Args:
            payload: Fields of the new record
            user: Current user; None means unauthenticated
            access_token: Token forwarded to the store

        Returns:
            The created record, or None on failure
        """
        if user is None:
            logger.warning("Rejected create from unauthenticated user", extra={"operation": "create"})
            self.notifications.error("User not authenticated")
            return None

        row = payload_to_row(payload)
        row["user_id"] = user.id

        try:
            created_row = await self._store.insert(row, access_token)
            created = row_to_error(created_row)
        except (RecordStoreError, RowMappingError) as e:
            log_error_with_context(
                logger, "Failed to create error record", e, operation="create", user_id=user.id
            )
            self.notifications.error("Failed to create error", user.id)
            return None

        log_record_event(logger, "created", error_id=created.id, user_id=user.id)
        self.notifications.success("Error created successfully", user.id)
        await self.list(access_token, user.id)
        return self.get(created.id) or created

    async def update(
        self,
        error_id: str,
        payload: ErrorUpdate,
        access_token: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Optional[ErrorRecord]:
        """
        Replace the set fields of one record, then re-read the list.

        Returns:
            The updated record, or None on failure
        """
        fields = payload_to_row(payload)

        try:
            updated_row = await self._store.update(error_id, fields, access_token)
            updated = row_to_error(updated_row)
        except (RecordStoreError, RowMappingError) as e:
            log_error_with_context(
                logger, "Failed to update error record", e,
                operation="update", error_id=error_id, user_id=user_id,
            )
            self.notifications.error("Failed to update error", user_id)
            return None

        log_record_event(logger, "updated", error_id=error_id, user_id=user_id)
        self.notifications.success("Error updated successfully", user_id)
        await self.list(access_token, user_id)
        return self.get(error_id) or updated

    async def delete(
        self,
        error_id: str,
        access_token: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> bool:
        """
        Delete one record, then re-read the list.

        Returns:
            True on success, False on failure
        """
        try:
            await self._store.delete(error_id, access_token)
        except RecordStoreError as e:
            log_error_with_context(
                logger, "Failed to delete error record", e,
                operation="delete", error_id=error_id, user_id=user_id,
            )
            self.notifications.error("Failed to delete error", user_id)
            return False

        log_record_event(logger, "deleted", error_id=error_id, user_id=user_id)
        self.notifications.success("Error deleted successfully", user_id)
        await self.list(access_token, user_id)
        return True


_error_repository: Optional[ErrorRepository] = None


def get_error_repository() -> ErrorRepository:
    """
    Get or create the global error repository.

    Returns:
        ErrorRepository instance
    """
    global _error_repository
    if _error_repository is None:
        _error_repository = ErrorRepository()
    return _error_repository
