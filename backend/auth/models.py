from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import EmailStr, Field, model_validator

from ..schemas import CamelModel
from ..storage.document_store import Document

MIN_PASSWORD_LENGTH = 6


class Role(str, Enum):
    customer = "customer"
    admin = "admin"


class User(Document):
    name: str
    email: str
    number: str
    password_hash: str
    role: Role = Role.customer
    is_verified: bool = False
    otp_hash: str | None = None
    otp_expires: datetime | None = None
    reset_token_hash: str | None = None
    reset_token_expires: datetime | None = None
    failed_login_attempts: int = 0
    lock_until: datetime | None = None

    def session_payload(self) -> dict:
        """What the signed session cookie carries for this user."""
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role.value}


class PublicUser(CamelModel):
    id: str
    name: str
    email: str
    number: str
    role: Role
    is_verified: bool

    @classmethod
    def of(cls, user: User) -> "PublicUser":
        return cls.model_validate(user.model_dump())


class _NewPassword(CamelModel):
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class RegisterRequest(_NewPassword):
    name: str = Field(..., min_length=1)
    email: EmailStr
    number: str = Field(..., min_length=7, max_length=20, pattern=r"^\+?[0-9][0-9 -]*$")


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyEmailRequest(CamelModel):
    otp: str = Field(..., pattern=r"^\d{6}$")


class ChangePasswordRequest(_NewPassword):
    current_password: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(_NewPassword):
    pass
