"""
Authentication REST API endpoints.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException

from app.api import dependencies
from app.api.dependencies import get_access_token, require_user
from app.models.api_response import StatusResponse
from app.models.user import AuthSession, CurrentUser, SignInRequest, SignUpRequest
from app.services.auth_client import AuthError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/sign-in", response_model=AuthSession)
async def sign_in(request: SignInRequest) -> AuthSession:
    """
    Sign in with email and password.

    Raises:
        HTTPException: 401 if the credentials are rejected
    """
    try:
        return await dependencies.auth_client.sign_in(request.email, request.password)
    except AuthError as e:
        logger.warning(f"Sign-in rejected: {e}")
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/sign-up", response_model=Union[AuthSession, StatusResponse], status_code=201)
async def sign_up(request: SignUpRequest) -> Union[AuthSession, StatusResponse]:
    """
    Register a new account.

    Returns a session when the account is active immediately, otherwise a
    pending status while the backend waits for email confirmation.
    """
    try:
        session = await dependencies.auth_client.sign_up(
            request.email, request.password, request.full_name
        )
    except AuthError as e:
        logger.warning(f"Sign-up rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    if session is None:
        return StatusResponse(status="pending", message="Check your email to confirm the account")
    return session


@router.post("/sign-out", response_model=StatusResponse)
async def sign_out(access_token: Optional[str] = Depends(get_access_token)) -> StatusResponse:
    """Revoke the current session."""
    if not access_token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        await dependencies.auth_client.sign_out(access_token)
    except AuthError as e:
        logger.error(f"Sign-out failed: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail="Sign-out failed")

    return StatusResponse(status="success", message="Signed out")


@router.get("/me", response_model=CurrentUser)
async def me(user: CurrentUser = Depends(require_user)) -> CurrentUser:
    """Identity of the signed-in user."""
    return user
