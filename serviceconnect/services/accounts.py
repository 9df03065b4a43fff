"""Account registration, OTP verification, login and password reset."""
from datetime import datetime, timedelta, timezone
import logging
import secrets

from sqlalchemy.orm import Session

from serviceconnect.core.config import get_settings, parse_admin_emails
from serviceconnect.core.database import atomic
from serviceconnect.core.errors import AuthenticationError, Conflict, ValidationError
from serviceconnect.core.security import hash_password, verify_password
from serviceconnect.models import Provider, User, UserRole
from serviceconnect.services.wallet import get_or_create_wallet

logger = logging.getLogger(__name__)

SELF_REGISTER_ROLES = (UserRole.CUSTOMER, UserRole.PROVIDER)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # DB might return aware (preferred) or naive timestamps depending on driver/config.
    # Treat naive timestamps as UTC to avoid 500s in comparisons.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def generate_otp() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def _issue_otp(user: User) -> str:
    otp = generate_otp()
    user.otp_code = otp
    user.otp_expires_at = _utcnow() + timedelta(minutes=get_settings().otp_expire_minutes)
    return otp


def _otp_matches(user: User, otp: str) -> bool:
    if not user.otp_code or not user.otp_expires_at:
        return False
    if not secrets.compare_digest(user.otp_code, (otp or "").strip()):
        return False
    return _as_utc(user.otp_expires_at) >= _utcnow()


def effective_role(user: User) -> UserRole:
    """Stored role, unless the email is listed in ADMIN_EMAILS."""
    if user.email and user.email.lower() in parse_admin_emails(get_settings().admin_emails):
        return UserRole.ADMIN
    return user.role


def register(db: Session, email: str, password: str, role: UserRole, full_name: str | None = None) -> tuple[User, str]:
    """Create (or refresh) a pending account. Returns the user and the OTP to deliver."""
    if role not in SELF_REGISTER_ROLES:
        raise ValidationError("Invalid role specified. Must be customer or provider.")
    email = email.strip().lower()

    with atomic(db):
        user = db.query(User).filter(User.email == email).first()
        if user and user.is_verified:
            raise Conflict("Email already exists and is active.")
        if user is None:
            user = User(email=email, is_verified=False)
            db.add(user)
        user.hashed_password = hash_password(password)
        user.role = role
        user.full_name = (full_name or "").strip() or user.full_name
        otp = _issue_otp(user)
        db.flush()
    logger.info("Registration pending user_id=%s role=%s", user.id, role.value)
    return user, otp


def verify_otp(db: Session, email: str, otp: str) -> User:
    """Activate a pending account and provision its wallet (and provider profile)."""
    email = email.strip().lower()
    with atomic(db):
        user = db.query(User).filter(User.email == email).with_for_update().first()
        if not user or user.is_verified:
            raise ValidationError("Account not found or already verified.")
        if not _otp_matches(user, otp):
            raise AuthenticationError("Invalid or expired OTP.")

        user.is_verified = True
        user.otp_code = None
        user.otp_expires_at = None
        if user.role == UserRole.PROVIDER:
            existing = db.query(Provider).filter(Provider.user_id == user.id).first()
            if existing is None:
                db.add(
                    Provider(
                        user_id=user.id,
                        display_name=f"New Provider {user.id}",
                        bio="A dedicated service provider.",
                        location_lat=0,
                        location_lon=0,
                        service_radius_km=10,
                    )
                )
        get_or_create_wallet(db, user.id)
        db.flush()
    logger.info("Account verified user_id=%s role=%s", user.id, user.role.value)
    return user


def authenticate(db: Session, email: str, password: str) -> tuple[User, UserRole]:
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid email or password.")
    if not user.is_verified:
        raise AuthenticationError("Account is not active. Please check your email for verification code.")
    if not user.is_active:
        raise AuthenticationError("User is inactive.")

    role = effective_role(user)
    if role == UserRole.ADMIN and user.role != UserRole.ADMIN:
        logger.warning("User %s authenticated as admin via ADMIN_EMAILS", user.id)
    return user, role


def request_password_reset(db: Session, email: str) -> str | None:
    """Issue a reset OTP for an active account. Returns None for unknown emails."""
    email = email.strip().lower()
    with atomic(db):
        user = db.query(User).filter(User.email == email, User.is_verified.is_(True)).first()
        if user is None:
            return None
        otp = _issue_otp(user)
        db.flush()
    return otp


def reset_password(db: Session, email: str, otp: str, new_password: str) -> User:
    email = email.strip().lower()
    with atomic(db):
        user = db.query(User).filter(User.email == email, User.is_verified.is_(True)).first()
        if not user or not _otp_matches(user, otp):
            raise AuthenticationError("Invalid or expired OTP.")
        user.hashed_password = hash_password(new_password)
        user.otp_code = None
        user.otp_expires_at = None
        db.flush()
    logger.info("Password reset user_id=%s", user.id)
    return user
