"""Account and token schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Credentials(BaseModel):
    """Email and password, as sent to login."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        # Reminder emails go to the stored address, so keep one spelling per account
        return value.strip().lower()


class UserRegister(Credentials):
    name: str | None = Field(None, max_length=255)


UserLogin = Credentials


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    """Bearer token plus the account it belongs to."""

    access_token: str
    token_type: str = "bearer"  # noqa: S105
    user: UserResponse
