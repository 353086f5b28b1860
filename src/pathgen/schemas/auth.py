"""Auth request and response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Credentials(BaseModel):
    """Email/password pair used by register and login."""

    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or not domain or " " in value:
            raise ValueError("must be a valid email address")
        return value


class RegisterRequest(Credentials):
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(Credentials):
    pass


class UserPublic(BaseModel):
    id: UUID
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserProfile(UserPublic):
    created_at: datetime


class SessionToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class AuthResponse(BaseModel):
    """Returned by register and login."""

    user: UserPublic
    session: SessionToken
