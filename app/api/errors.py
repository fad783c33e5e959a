"""
Error record REST API endpoints.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse, Response

from app.api.dependencies import (
    error_repository,
    export_service,
    form_service,
    get_access_token,
    notification_center,
    require_user,
)
from app.models.api_response import ErrorListResponse, FormErrorResponse, StatusResponse
from app.models.error import ErrorRecord, ErrorSeverity, ErrorStats, ErrorStatus
from app.models.filters import FilterOptions, SortDirection, SortKey
from app.models.user import CurrentUser
from app.services.exporter import ExportFormat, ExportScope
from app.services.filtering import (
    active_filter_count,
    apply_filters,
    available_assignees,
    available_systems,
    available_tags,
)
from app.services.record_form import FormValidationError, ImageUpload, ImageUploadError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/errors", tags=["errors"])


def get_filter_options(
    search: str = "",
    severity: Optional[ErrorSeverity] = None,
    status: Optional[ErrorStatus] = None,
    system: Optional[str] = None,
    assigned_to: Optional[str] = None,
    tags: List[str] = Query(default=[]),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> FilterOptions:
    """
    Build filter options from query parameters.

    Date bounds cover whole days in UTC: ``date_from`` starts at midnight and
    ``date_to`` ends at the last microsecond of the day.
    """
    return FilterOptions(
        search=search,
        severity=severity,
        status=status,
        system=system or None,
        assigned_to=assigned_to or None,
        tags=tags,
        date_from=datetime.combine(date_from, time.min, tzinfo=timezone.utc) if date_from else None,
        date_to=datetime.combine(date_to, time.max, tzinfo=timezone.utc) if date_to else None,
    )


def form_fields(
    title: str = Form(""),
    description: str = Form(""),
    resolution: Optional[str] = Form(None),
    severity: str = Form(ErrorSeverity.MEDIUM.value),
    status: str = Form(ErrorStatus.OPEN.value),
    system: str = Form(""),
    error_code: Optional[str] = Form(None),
    stack_trace: Optional[str] = Form(None),
    assigned_to: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
) -> Dict[str, Any]:
    """Raw record form fields; validation happens in the form service."""
    return {
        "title": title,
        "description": description,
        "resolution": resolution,
        "severity": severity,
        "status": status,
        "system": system,
        "error_code": error_code,
        "stack_trace": stack_trace,
        "assigned_to": assigned_to,
        "tags": tags,
    }


async def _read_image(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    if image is None or not image.filename:
        return None
    content = await image.read()
    if not content:
        return None
    return ImageUpload(
        filename=image.filename,
        content=content,
        content_type=image.content_type or "application/octet-stream",
    )


def _form_error_response(error: FormValidationError) -> JSONResponse:
    body = FormErrorResponse(detail="Invalid form input", field_errors=error.field_errors)
    return JSONResponse(status_code=422, content=body.model_dump())


async def _find_record(
    error_id: str,
    access_token: Optional[str],
    user_id: Optional[str] = None,
) -> ErrorRecord:
    record = error_repository.get(error_id)
    if record is None:
        await error_repository.list(access_token, user_id)
        record = error_repository.get(error_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Error not found: {error_id}")
    return record


@router.get("", response_model=ErrorListResponse)
async def list_errors(
    filters: FilterOptions = Depends(get_filter_options),
    sort_by: SortKey = SortKey.TIMESTAMP,
    order: SortDirection = SortDirection.DESC,
    user: CurrentUser = Depends(require_user),
    access_token: Optional[str] = Depends(get_access_token),
) -> ErrorListResponse:
    """
    List error records.

    Re-reads the store, then filters and sorts the result. When the read
    fails the last successfully loaded list is returned alongside an error
    notification.
    """
    records = await error_repository.list(access_token, user.id)
    filtered = apply_filters(records, filters, sort_by, order)

    logger.info(f"Showing {len(filtered)} of {len(records)} errors")
    return ErrorListResponse(
        records=filtered,
        total=len(records),
        filtered=len(filtered),
        stats=error_repository.stats,
        systems=available_systems(records),
        assignees=available_assignees(records),
        tags=available_tags(records),
        active_filters=active_filter_count(filters),
        notifications=notification_center.drain(user.id),
    )


@router.get("/stats", response_model=ErrorStats, dependencies=[Depends(require_user)])
async def get_stats() -> ErrorStats:
    """Aggregate counts over the last loaded list."""
    return error_repository.stats


@router.get("/export")
async def export_errors(
    format: ExportFormat,
    scope: ExportScope = ExportScope.FILTERED,
    filters: FilterOptions = Depends(get_filter_options),
    sort_by: SortKey = SortKey.TIMESTAMP,
    order: SortDirection = SortDirection.DESC,
    user: CurrentUser = Depends(require_user),
    access_token: Optional[str] = Depends(get_access_token),
) -> Response:
    """
    Download the whole list or the filtered view as CSV or PDF.

    Raises:
        HTTPException: 500 if the file could not be generated
    """
    records = await error_repository.list(access_token, user.id)
    if scope == ExportScope.FILTERED:
        records = apply_filters(records, filters, sort_by, order)

    artifact = export_service.export(list(records), format, scope, user_id=user.id)
    if artifact is None:
        raise HTTPException(status_code=500, detail="Export failed. Please try again.")

    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.get("/{error_id}", response_model=ErrorRecord)
async def get_error(
    error_id: str,
    user: CurrentUser = Depends(require_user),
    access_token: Optional[str] = Depends(get_access_token),
) -> ErrorRecord:
    """
    Get one error record.

    Raises:
        HTTPException: 404 if the record does not exist
    """
    return await _find_record(error_id, access_token, user.id)


@router.post("", response_model=ErrorRecord, status_code=201)
async def create_error(
    fields: Dict[str, Any] = Depends(form_fields),
    image: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(require_user),
    access_token: Optional[str] = Depends(get_access_token),
):
    """
    Create an error record from the record form.

    The record is assigned to the current user. An attached image is
    uploaded first; if the upload fails nothing is written.

    Raises:
        HTTPException: 502 if the image or the record could not be stored
    """
    try:
        logger.info(f"Creating error record for system: {fields.get('system')}")
        record = await form_service.submit_create(
            fields, user, await _read_image(image), access_token
        )
    except FormValidationError as e:
        logger.warning(f"Record form rejected: {e}")
        return _form_error_response(e)
    except ImageUploadError as e:
        logger.warning(f"Image upload failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to upload image")

    if record is None:
        raise HTTPException(status_code=502, detail="Failed to create error")

    logger.info(f"Error record created: {record.id}")
    return record


@router.put("/{error_id}", response_model=ErrorRecord)
async def update_error(
    error_id: str,
    fields: Dict[str, Any] = Depends(form_fields),
    image: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(require_user),
    access_token: Optional[str] = Depends(get_access_token),
):
    """
    Update an error record from the record form.

    Raises:
        HTTPException: 404 if the record does not exist, 502 if the store
            rejected the write
    """
    existing = await _find_record(error_id, access_token, user.id)

    try:
        logger.info(f"Updating error record: {error_id}")
        record = await form_service.submit_update(
            existing, fields, user, await _read_image(image), access_token
        )
    except FormValidationError as e:
        logger.warning(f"Record form rejected: {e}")
        return _form_error_response(e)
    except ImageUploadError as e:
        logger.warning(f"Image upload failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to upload image")

    if record is None:
        raise HTTPException(status_code=502, detail="Failed to update error")

    return record


@router.delete("/{error_id}", response_model=StatusResponse)
async def delete_error(
    error_id: str,
    user: CurrentUser = Depends(require_user),
    access_token: Optional[str] = Depends(get_access_token),
) -> StatusResponse:
    """
    Delete an error record.

    Raises:
        HTTPException: 502 if the store rejected the delete
    """
    logger.info(f"Deleting error record: {error_id}")

    if not await error_repository.delete(error_id, access_token, user.id):
        raise HTTPException(status_code=502, detail="Failed to delete error")

    return StatusResponse(status="success", message=f"Error {error_id} deleted")
