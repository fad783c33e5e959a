"""
Auth client for the hosted backend.

Sign-in, sign-up and sign-out are delegated to the backend's auth service.
The rest of the application only consumes the resulting CurrentUser (id and
display name) or the absence of one.
"""

from typing import Any, Dict, Optional

import httpx

from app.models.user import AuthSession, CurrentUser
from app.utils.logging import get_logger
from app.utils.metrics import MetricsCollector, track_api_call


logger = get_logger(__name__)

DEFAULT_DISPLAY_NAME = "User"


class AuthError(Exception):
    """Raised when the auth service rejects a request or is unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthClient:
    """Async client for the backend auth service and the profiles table."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        profiles_table: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        if base_url is None or api_key is None or profiles_table is None or timeout is None:
            from app.config import settings
            base_url = base_url or settings.supabase_url
            api_key = api_key or settings.supabase_anon_key
            profiles_table = profiles_table or settings.profiles_table
            timeout = timeout if timeout is not None else settings.http_timeout_seconds

        self.base_url = base_url.rstrip("/")
        self.profiles_table = profiles_table
        self._api_key = api_key
        self._client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        self.metrics = metrics or MetricsCollector("auth")

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token or self._api_key}",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        async with track_api_call(self.metrics, "auth", logger, method, path):
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                raise AuthError(f"{method} {path} failed: {e}") from e

            if response.is_error:
                raise AuthError(
                    self._error_message(response),
                    status_code=response.status_code,
                )
            return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if not isinstance(body, dict):
            return f"HTTP {response.status_code}"
        return (
            body.get("error_description")
            or body.get("msg")
            or body.get("message")
            or f"HTTP {response.status_code}"
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Exchange email and password for a session.

        Raises:
            AuthError: If the credentials are rejected
        """
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers=self._headers(),
        )
        body = response.json()
        user = await self._to_current_user(body["user"], body["access_token"])
        logger.info("User signed in", extra={"user_id": user.id})
        return AuthSession(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            expires_in=body.get("expires_in"),
            user=user,
        )

    async def sign_up(self, email: str, password: str, full_name: str) -> Optional[AuthSession]:
        """
        Register a new account.

        Returns:
            A session when the backend signs the user in immediately, None when
            email confirmation is pending.

        Raises:
            AuthError: If registration is rejected
        """
        response = await self._request(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password, "data": {"full_name": full_name}},
            headers=self._headers(),
        )
        body = response.json()
        if not body.get("access_token"):
            logger.info("User signed up, confirmation pending")
            return None

        user = await self._to_current_user(body["user"], body["access_token"])
        logger.info("User signed up", extra={"user_id": user.id})
        return AuthSession(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            expires_in=body.get("expires_in"),
            user=user,
        )

    async def sign_out(self, access_token: str) -> None:
        """
        Revoke the session behind an access token.

        Raises:
            AuthError: If the backend rejects the request
        """
        await self._request("POST", "/auth/v1/logout", headers=self._headers(access_token))
        logger.info("User signed out")

    async def get_user(self, access_token: str) -> Optional[CurrentUser]:
        """
        Resolve an access token to the current user.

        Returns:
            CurrentUser, or None when the token is missing, invalid or expired

        Raises:
            AuthError: If the auth service is unreachable or fails
        """
        if not access_token:
            return None

        try:
            response = await self._request("GET", "/auth/v1/user", headers=self._headers(access_token))
        except AuthError as e:
            if e.status_code in (401, 403):
                return None
            raise

        return await self._to_current_user(response.json(), access_token)

    async def get_display_name(self, user_id: str, access_token: str) -> Optional[str]:
        """Full name from the profiles table, if the user has one."""
        response = await self._request(
            "GET",
            f"/rest/v1/{self.profiles_table}",
            params={"select": "full_name", "id": f"eq.{user_id}"},
            headers=self._headers(access_token),
        )
        rows = response.json()
        if rows and rows[0].get("full_name"):
            return rows[0]["full_name"]
        return None

    async def _to_current_user(self, payload: Dict[str, Any], access_token: str) -> CurrentUser:
        user_id = str(payload["id"])
        email = payload.get("email")

        try:
            full_name = await self.get_display_name(user_id, access_token)
        except AuthError as e:
            # A missing profile must not block sign-in
            logger.warning(f"Profile lookup failed for {user_id}: {e}", extra={"user_id": user_id})
            full_name = None

        return CurrentUser(
            id=user_id,
            email=email,
            display_name=full_name or email or DEFAULT_DISPLAY_NAME,
        )


_auth_client: Optional[AuthClient] = None


def get_auth_client() -> AuthClient:
    """
    Get or create the global auth client.

    Returns:
        AuthClient instance
    """
    global _auth_client
    if _auth_client is None:
        _auth_client = AuthClient()
    return _auth_client
