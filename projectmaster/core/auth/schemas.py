from typing import Any

from pydantic import BaseModel, Field


class AuthSession(BaseModel):
    """An authenticated session: at minimum a stable user id and an email."""

    user_id: str
    email: str = ""
    access_token: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class AuthCredential(BaseModel):
    user_id: str
    email: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
