"""User credential schemas."""

from pydantic import Field

from app.core.enums import UserRole
from app.core.schemas import ApiModel


class PasswordChange(ApiModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
    role: UserRole


class UsernameChange(ApiModel):
    new_username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    role: UserRole


class CredentialChangeResponse(ApiModel):
    success: bool = True
    message: str
