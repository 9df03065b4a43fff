import logging

import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from serviceconnect.core.config import get_settings
from serviceconnect.core.database import get_db
from serviceconnect.core.security import create_access_token, create_refresh_token, decode_token
from serviceconnect.dependencies import get_current_user
from serviceconnect.middlewares.rate_limit import limiter
from serviceconnect.models import User
from serviceconnect.schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    Message,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenPair,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from serviceconnect.schemas.user import UserOut
from serviceconnect.services import accounts
from serviceconnect.services.notifications import send_otp

settings = get_settings()
router = APIRouter()
logger = logging.getLogger(__name__)


def _expose_otp() -> bool:
    # Handy for local testing; never returned in production.
    env = (settings.environment or "").lower()
    return bool(env) and env != "production"


def _token_pair(user: User, role) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(str(user.id), role.value),
        refresh_token=create_refresh_token(str(user.id), role.value),
        user_id=user.id,
        role=role,
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    user, otp = accounts.register(db, payload.email, payload.password, payload.role, payload.full_name)
    send_otp(user.email, otp, purpose="verify")
    return RegisterResponse(
        message="Registration initiation successful. OTP sent to your email for verification.",
        user_id=user.id,
        role=user.role,
        otp=otp if _expose_otp() else None,
    )


@router.post("/verify-otp", response_model=VerifyOtpResponse)
@limiter.limit("10/minute")
def verify_otp(request: Request, payload: VerifyOtpRequest, db: Session = Depends(get_db)):
    user = accounts.verify_otp(db, payload.email, payload.otp)
    return VerifyOtpResponse(message="Account verified successfully.", role=user.role)


@router.post("/login", response_model=TokenPair)
@limiter.limit("10/minute")
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    user, role = accounts.authenticate(db, payload.email, payload.password)
    return _token_pair(user, role)


@router.post("/refresh", response_model=TokenPair)
@limiter.limit("30/minute")
def refresh(request: Request, payload: RefreshRequest, db: Session = Depends(get_db)):
    try:
        decoded = decode_token(payload.refresh_token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if decoded.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    try:
        user_id = int(decoded.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active or not user.is_verified:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    return _token_pair(user, accounts.effective_role(user))


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
@limiter.limit("5/minute")
def forgot_password(request: Request, payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    otp = accounts.request_password_reset(db, payload.email)
    if otp:
        send_otp(payload.email, otp, purpose="reset")

    # Avoid user enumeration: always return the same message.
    message = "A password reset code has been sent to your email."
    if otp and _expose_otp():
        return ForgotPasswordResponse(message=message, otp=otp)
    return ForgotPasswordResponse(message=message)


@router.post("/reset-password", response_model=Message)
@limiter.limit("10/minute")
def reset_password(request: Request, payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    accounts.reset_password(db, payload.email, payload.otp, payload.new_password)
    return Message(message="Password reset successfully. You can now log in.")


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return UserOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=accounts.effective_role(user),
        is_active=user.is_active,
        is_verified=user.is_verified,
    )
