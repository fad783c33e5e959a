"""Authentication data models."""

from typing import Optional

from pydantic import BaseModel, Field


class CurrentUser(BaseModel):
    """Identity of the signed-in user."""

    id: str
    email: Optional[str] = None
    display_name: str


class AuthSession(BaseModel):
    """Session returned by the auth service after sign-in."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: CurrentUser


class SignInRequest(BaseModel):
    """Sign-in request model."""

    email: str
    password: str = Field(min_length=1)


class SignUpRequest(BaseModel):
    """Sign-up request model."""

    email: str
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
