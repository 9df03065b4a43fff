from pydantic import BaseModel, EmailStr, validator
from typing import Optional

from serviceconnect.models.user import UserRole


def _validate_password_length(value: str) -> str:
    if len(value.encode("utf-8")) > 72:
        raise ValueError("Password too long (max 72 bytes)")
    return value


def _validate_password_present(value: str) -> str:
    if not value:
        raise ValueError("Password is required")
    return value


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user_id: int
    role: UserRole


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    role: UserRole
    full_name: Optional[str] = None

    _password_present = validator("password", allow_reuse=True)(_validate_password_present)
    _password_len = validator("password", allow_reuse=True)(_validate_password_length)


class RegisterResponse(BaseModel):
    message: str
    user_id: int
    role: UserRole
    otp: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str


class VerifyOtpResponse(BaseModel):
    message: str
    role: UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    _password_len = validator("password", allow_reuse=True)(_validate_password_length)


class RefreshRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ForgotPasswordResponse(BaseModel):
    message: str
    otp: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str
    new_password: str

    _password_present = validator("new_password", allow_reuse=True)(_validate_password_present)
    _password_len = validator("new_password", allow_reuse=True)(_validate_password_length)


class Message(BaseModel):
    message: str
