"""
Record Store client for the hosted backend.

This module talks to the PostgREST endpoint that holds the ``errors`` table
and to the object storage bucket that holds uploaded screenshots. It performs
no retries: every failure is raised as RecordStoreError and left to the
caller to surface.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.utils.logging import get_logger
from app.utils.metrics import MetricsCollector, track_api_call


logger = get_logger(__name__)


class RecordStoreError(Exception):
    """Raised when the record or blob store rejects a call or is unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordNotFoundError(RecordStoreError):
    """Raised when an update or delete matches no row."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class RecordStoreClient:
    """
    Thin async client over the record store and blob store boundaries.

    Provides:
    - select_all / insert / update / delete against the errors table
    - upload_image / public_url against the image bucket
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        table: Optional[str] = None,
        bucket: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize the record store client.

        Args:
            base_url: Backend base URL. If None, loaded from settings.
            api_key: Public (anon) API key. If None, loaded from settings.
            table: Errors table name. If None, loaded from settings.
            bucket: Image bucket name. If None, loaded from settings.
            timeout: HTTP timeout in seconds. If None, loaded from settings.
            http_client: Pre-built httpx client (used by tests)
            metrics: Metrics collector for call latency
        """
        if base_url is None or api_key is None or table is None or bucket is None or timeout is None:
            from app.config import settings
            base_url = base_url or settings.supabase_url
            api_key = api_key or settings.supabase_anon_key
            table = table or settings.errors_table
            bucket = bucket or settings.image_bucket
            timeout = timeout if timeout is not None else settings.http_timeout_seconds

        self.base_url = base_url.rstrip("/")
        self.table = table
        self.bucket = bucket
        self._api_key = api_key
        self._client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        self.metrics = metrics or MetricsCollector("record_store")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _headers(self, access_token: Optional[str] = None, **extra: str) -> Dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token or self._api_key}",
        }
        headers.update(extra)
        return headers

    async def _request(
        self,
        service: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Issue one request and translate failures into RecordStoreError.

        Args:
            service: Service label for metrics and logs
            method: HTTP method
            path: Path relative to the backend base URL
            **kwargs: Passed through to httpx

        Returns:
            The successful response

        Raises:
            RecordStoreError: On transport failure or non-2xx status
        """
        async with track_api_call(self.metrics, service, logger, method, path):
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                raise RecordStoreError(f"{method} {path} failed: {e}") from e

            if response.is_error:
                raise RecordStoreError(
                    f"{method} {path} returned {response.status_code}: {response.text}",
                    status_code=response.status_code,
                )
            return response

    @property
    def _table_path(self) -> str:
        return f"/rest/v1/{self.table}"

    async def select_all(self, access_token: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Read every row, newest first.

        Returns:
            Raw rows as dictionaries

        Raises:
            RecordStoreError: If the store call fails
        """
        response = await self._request(
            "record_store",
            "GET",
            self._table_path,
            params={"select": "*", "order": "created_at.desc"},
            headers=self._headers(access_token),
        )
        rows = response.json()
        if not isinstance(rows, list):
            raise RecordStoreError("Unexpected response shape from record store")
        return rows

    async def insert(self, row: Dict[str, Any], access_token: Optional[str] = None) -> Dict[str, Any]:
        """
        Insert one row and return it as stored.

        The store assigns id, timestamp, last_occurrence and occurrences.
        """
        response = await self._request(
            "record_store",
            "POST",
            self._table_path,
            params={"select": "*"},
            json=row,
            headers=self._headers(access_token, Prefer="return=representation"),
        )
        return self._single_row(response)

    async def update(
        self,
        record_id: str,
        fields: Dict[str, Any],
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Replace the given fields of one row and return it as stored.

        Raises:
            RecordNotFoundError: If no row has this id
            RecordStoreError: If the store call fails
        """
        response = await self._request(
            "record_store",
            "PATCH",
            self._table_path,
            params={"id": f"eq.{record_id}", "select": "*"},
            json=fields,
            headers=self._headers(access_token, Prefer="return=representation"),
        )
        rows = response.json()
        if not rows:
            raise RecordNotFoundError(f"Error record not found: {record_id}")
        return rows[0] if isinstance(rows, list) else rows

    async def delete(self, record_id: str, access_token: Optional[str] = None) -> None:
        """
        Delete one row by id.

        Raises:
            RecordStoreError: If the store call fails
        """
        await self._request(
            "record_store",
            "DELETE",
            self._table_path,
            params={"id": f"eq.{record_id}"},
            headers=self._headers(access_token),
        )

    async def upload_image(
        self,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        access_token: Optional[str] = None,
    ) -> str:
        """
        Upload a blob to the image bucket.

        Args:
            path: Object path inside the bucket
            content: Raw bytes
            content_type: MIME type stored with the object

        Returns:
            Public URL of the uploaded object

        Raises:
            RecordStoreError: If the upload fails
        """
        await self._request(
            "blob_store",
            "POST",
            f"/storage/v1/object/{self.bucket}/{quote(path)}",
            content=content,
            headers=self._headers(access_token, **{"Content-Type": content_type}),
        )
        logger.info(f"Uploaded image to {self.bucket}/{path}")
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        """Public URL of an object in the image bucket."""
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    @staticmethod
    def _single_row(response: httpx.Response) -> Dict[str, Any]:
        payload = response.json()
        if isinstance(payload, list):
            if not payload:
                raise RecordStoreError("Record store returned no row")
            return payload[0]
        return payload


_record_store: Optional[RecordStoreClient] = None


def get_record_store() -> RecordStoreClient:
    """
    Get or create the global record store client.

    Returns:
        RecordStoreClient instance
    """
    global _record_store
    if _record_store is None:
        _record_store = RecordStoreClient()
    return _record_store
