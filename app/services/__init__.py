"""Business logic services package."""

from app.services.record_store import (
    RecordStoreClient,
    RecordStoreError,
    RecordNotFoundError,
    get_record_store
)
from app.services.auth_client import (
    AuthClient,
    AuthError,
    get_auth_client
)
from app.services.notifications import NotificationCenter
from app.services.error_repository import (
    ErrorRepository,
    RowMappingError,
    get_error_repository,
    row_to_error,
    payload_to_row
)
from app.services.filtering import apply_filters, active_filter_count
from app.services.record_form import (
    ErrorForm,
    FormValidationError,
    ImageUpload,
    ImageUploadError,
    RecordFormService
)
from app.services.exporter import (
    ExportArtifact,
    ExportFormat,
    ExportScope,
    ExportService,
    to_csv,
    to_pdf
)

__all__ = [
    'RecordStoreClient',
    'RecordStoreError',
    'RecordNotFoundError',
    'get_record_store',
    'AuthClient',
    'AuthError',
    'get_auth_client',
    'NotificationCenter',
    'ErrorRepository',
    'RowMappingError',
    'get_error_repository',
    'row_to_error',
    'payload_to_row',
    'apply_filters',
    'active_filter_count',
    'ErrorForm',
    'FormValidationError',
    'ImageUpload',
    'ImageUploadError',
    'RecordFormService',
    'ExportArtifact',
    'ExportFormat',
    'ExportScope',
    'ExportService',
    'to_csv',
    'to_pdf'
]
