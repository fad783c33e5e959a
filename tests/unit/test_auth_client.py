"""
Unit tests for the auth client.
"""

import json

import httpx
import pytest

from app.services.auth_client import AuthClient, AuthError


BASE_URL = "https://backend.test"

USER_PAYLOAD = {"id": "user-1", "email": "ana@example.com"}
SESSION_PAYLOAD = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "expires_in": 3600,
    "user": USER_PAYLOAD,
}


def _client(handler):
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return AuthClient(
        base_url=BASE_URL,
        api_key="anon-key",
        profiles_table="profiles",
        timeout=5.0,
        http_client=http_client,
    )


def _router(routes):
    """Dispatch requests by path to canned responses and record them."""
    calls = []

    def handler(request):
        calls.append(request)
        response = routes[request.url.path]
        return response(request) if callable(response) else response

    return handler, calls


@pytest.mark.asyncio
async def test_sign_in_resolves_profile_name():
    """Test that sign-in returns a session whose user has the profile name."""
    handler, calls = _router({
        "/auth/v1/token": httpx.Response(200, json=SESSION_PAYLOAD),
        "/rest/v1/profiles": httpx.Response(200, json=[{"full_name": "Ana Silva"}]),
    })

    session = await _client(handler).sign_in("ana@example.com", "secret")

    assert session.access_token == "access-1"
    assert session.user.id == "user-1"
    assert session.user.display_name == "Ana Silva"
    token_request = calls[0]
    assert token_request.url.params["grant_type"] == "password"
    assert json.loads(token_request.content) == {"email": "ana@example.com", "password": "secret"}
    assert calls[1].headers["authorization"] == "Bearer access-1"


@pytest.mark.asyncio
async def test_sign_in_rejected():
    """Test that bad credentials raise AuthError with the backend message."""
    handler, _ = _router({
        "/auth/v1/token": httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}
        ),
    })

    with pytest.raises(AuthError) as exc_info:
        await _client(handler).sign_in("ana@example.com", "wrong")

    assert str(exc_info.value) == "Invalid login credentials"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_display_name_falls_back_to_email():
    """Test fallback when the user has no profile row."""
    handler, _ = _router({
        "/auth/v1/token": httpx.Response(200, json=SESSION_PAYLOAD),
        "/rest/v1/profiles": httpx.Response(200, json=[]),
    })

    session = await _client(handler).sign_in("ana@example.com", "secret")

    assert session.user.display_name == "ana@example.com"


@pytest.mark.asyncio
async def test_profile_lookup_failure_is_not_fatal():
    handler, _ = _router({
        "/auth/v1/token": httpx.Response(200, json=SESSION_PAYLOAD),
        "/rest/v1/profiles": httpx.Response(500, text="db down"),
    })

    session = await _client(handler).sign_in("ana@example.com", "secret")

    assert session.user.display_name == "ana@example.com"


@pytest.mark.asyncio
async def test_sign_up_pending_confirmation():
    """Test that sign-up without a session returns None."""
    handler, calls = _router({
        "/auth/v1/signup": httpx.Response(200, json={"id": "user-2", "email": "new@example.com"}),
    })

    session = await _client(handler).sign_up("new@example.com", "secret", "New User")

    assert session is None
    assert json.loads(calls[0].content)["data"] == {"full_name": "New User"}


@pytest.mark.asyncio
async def test_sign_up_with_session():
    handler, _ = _router({
        "/auth/v1/signup": httpx.Response(200, json=SESSION_PAYLOAD),
        "/rest/v1/profiles": httpx.Response(200, json=[{"full_name": "Ana Silva"}]),
    })

    session = await _client(handler).sign_up("ana@example.com", "secret", "Ana Silva")

    assert session.user.display_name == "Ana Silva"


@pytest.mark.asyncio
async def test_sign_out_sends_token():
    handler, calls = _router({"/auth/v1/logout": httpx.Response(204)})

    await _client(handler).sign_out("access-1")

    assert calls[0].headers["authorization"] == "Bearer access-1"


@pytest.mark.asyncio
async def test_get_user():
    handler, _ = _router({
        "/auth/v1/user": httpx.Response(200, json=USER_PAYLOAD),
        "/rest/v1/profiles": httpx.Response(200, json=[{"full_name": "Ana Silva"}]),
    })

    user = await _client(handler).get_user("access-1")

    assert user.id == "user-1"
    assert user.display_name == "Ana Silva"


@pytest.mark.asyncio
async def test_get_user_invalid_token_returns_none():
    """Test that an expired token means no current user."""
    handler, _ = _router({"/auth/v1/user": httpx.Response(401, json={"msg": "invalid JWT"})})

    assert await _client(handler).get_user("expired") is None


@pytest.mark.asyncio
async def test_get_user_without_token_makes_no_call():
    handler, calls = _router({})

    assert await _client(handler).get_user("") is None
    assert calls == []


@pytest.mark.asyncio
async def test_get_user_service_failure_raises():
    """Test that auth service outages are not mistaken for signed-out users."""
    handler, _ = _router({"/auth/v1/user": httpx.Response(503, text="unavailable")})

    with pytest.raises(AuthError) as exc_info:
        await _client(handler).get_user("access-1")

    assert exc_info.value.status_code == 503
