"""
Record form: validation and normalisation of user input.

Raw form fields are validated into an ErrorForm, turned into a create or
update payload, and handed to the repository. Two policies apply at submit
time: the assignee is always the current user, and an attached image must
upload successfully or the whole submission is abandoned.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ValidationError, field_validator

from app.models.error import (
    ErrorCreate,
    ErrorRecord,
    ErrorSeverity,
    ErrorStatus,
    ErrorUpdate,
    normalize_tags,
)
from app.models.user import CurrentUser
from app.services.error_repository import ErrorRepository
from app.services.record_store import RecordStoreClient, RecordStoreError
from app.utils.logging import get_logger, log_error_with_context


logger = get_logger(__name__)

IMAGE_FOLDER = "error-images"

REQUIRED_MESSAGES = {
    "title": "Title is required",
    "description": "Description is required",
    "system": "System is required",
}


class FormValidationError(Exception):
    """Raised when form input fails validation; carries per-field messages."""

    def __init__(self, field_errors: Dict[str, str]):
        super().__init__("Form validation failed: " + ", ".join(sorted(field_errors)))
        self.field_errors = field_errors


class ImageUploadError(Exception):
    """Raised when the attached image could not be stored."""
    pass


class ImageUpload(BaseModel):
    """Image attached to a form submission."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return "bin"
        return self.filename.rsplit(".", 1)[-1].lower() or "bin"


def parse_tags(raw: Optional[str]) -> List[str]:
    """Split a comma separated tag string into trimmed, unique, non-empty tags."""
    if not raw:
        return []
    return normalize_tags(raw.split(","))


class ErrorForm(BaseModel):
    """Validated form input."""

    title: str
    description: str
    resolution: Optional[str] = None
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    status: ErrorStatus = ErrorStatus.OPEN
    system: str
    error_code: Optional[str] = None
    stack_trace: Optional[str] = None
    tags: List[str] = []

    @field_validator("title", "description", "system", mode="before")
    @classmethod
    def _required_text(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("required")
        return str(value).strip()

    @field_validator("resolution", "error_code", "stack_trace", mode="before")
    @classmethod
    def _optional_text(cls, value):
        if value is None or not str(value).strip():
            return None
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        if value is None or isinstance(value, str):
            return parse_tags(value)
        return normalize_tags(value)

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "ErrorForm":
        """
        Validate raw form data.

        Raises:
            FormValidationError: With one message per offending field
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            field_errors: Dict[str, str] = {}
            for error in e.errors():
                field = str(error["loc"][0]) if error["loc"] else "form"
                field_errors.setdefault(field, REQUIRED_MESSAGES.get(field, error["msg"]))
            raise FormValidationError(field_errors) from e


def resolve_resolved_at(
    status: ErrorStatus,
    existing: ErrorRecord,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """
    Resolution time for an existing record moving to ``status``.

    Resolved and closed records keep their first resolution time; records
    moving back to open or investigating lose it. A new resolution time never
    precedes the record's own timestamp, which the store assigned.
    """
    if not status.is_terminal:
        return None
    if existing.resolved_at is not None:
        return existing.resolved_at
    return max(now or datetime.now(timezone.utc), existing.timestamp)


class RecordFormService:
    """Turns validated form input into store writes."""

    def __init__(self, repository: ErrorRepository, store: RecordStoreClient):
        self.repository = repository
        self.store = store

    async def upload_image(
        self,
        image: ImageUpload,
        access_token: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> str:
        """
        Store an image under a timestamped name and return its public URL.

        Raises:
            ImageUploadError: If the blob store rejects the upload
        """
        path = f"{IMAGE_FOLDER}/{int(time.time() * 1000)}.{image.extension}"
        try:
            return await self.store.upload_image(path, image.content, image.content_type, access_token)
        except RecordStoreError as e:
            log_error_with_context(
                logger, "Image upload failed", e, operation="upload_image", user_id=user_id
            )
            self.repository.notifications.error("Failed to upload image", user_id)
            raise ImageUploadError(str(e)) from e

    async def _build_fields(
        self,
        form: ErrorForm,
        user: CurrentUser,
        image: Optional[ImageUpload],
        existing: Optional[ErrorRecord],
        access_token: Optional[str],
    ) -> Dict[str, Any]:
        if image is not None:
            image_url = await self.upload_image(image, access_token, user.id)
        else:
            image_url = existing.image_url if existing is not None else None

        fields = form.model_dump()
        fields.update(
            image_url=image_url,
            # New records get no resolution time; the store has not stamped them yet
            resolved_at=resolve_resolved_at(form.status, existing) if existing is not None else None,
            # Records are always assigned to whoever submits the form
            assigned_to=user.display_name,
        )
        return fields

    async def submit_create(
        self,
        data: Mapping[str, Any],
        user: Optional[CurrentUser],
        image: Optional[ImageUpload] = None,
        access_token: Optional[str] = None,
    ) -> Optional[ErrorRecord]:
        """
        Validate, upload the image if any, and create the record.

        Returns:
            The created record, or None when the repository reported a failure

        Raises:
            FormValidationError: If the input is invalid
            ImageUploadError: If the image upload failed
        """
        form = ErrorForm.parse(data)
        if user is None:
            return await self.repository.create(ErrorCreate(**form.model_dump()), None, access_token)

        fields = await self._build_fields(form, user, image, None, access_token)
        return await self.repository.create(ErrorCreate(**fields), user, access_token)

    async def submit_update(
        self,
        existing: ErrorRecord,
        data: Mapping[str, Any],
        user: CurrentUser,
        image: Optional[ImageUpload] = None,
        access_token: Optional[str] = None,
    ) -> Optional[ErrorRecord]:
        """
        Validate, upload the image if any, and update the record.

        Returns:
            The updated record, or None when the repository reported a failure

        Raises:
            FormValidationError: If the input is invalid
            ImageUploadError: If the image upload failed
        """
        form = ErrorForm.parse(data)
        fields = await self._build_fields(form, user, image, existing, access_token)
        return await self.repository.update(
            existing.id, ErrorUpdate(**fields), access_token, user_id=user.id
        )
