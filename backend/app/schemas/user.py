"""
Pydantic schemas for user management and authentication.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings


class UserPublic(BaseModel):
    """User fields visible to administrators."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    image: Optional[str] = None
    created_at: str


class RoleUpdate(BaseModel):
    role: Optional[str] = None


class SignUpRequest(BaseModel):
    """
    Request body for account registration.

    Attributes:
        name: Display name
        email: Login email
        password: Plain password, length bounded by settings
    """
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=320)
    password: str

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        if len(v) < settings.min_password_length:
            raise ValueError(
                f"Password must be at least {settings.min_password_length} characters"
            )
        if len(v) > settings.max_password_length:
            raise ValueError(
                f"Password must be at most {settings.max_password_length} characters"
            )
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class SignUpResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    email_verified: bool


class MessageResponse(BaseModel):
    message: str
