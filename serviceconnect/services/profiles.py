import logging

from sqlalchemy.orm import Session

from serviceconnect.core.config import get_settings, parse_admin_emails
from serviceconnect.core.database import atomic
from serviceconnect.core.errors import AuthorizationError, Conflict, NotFound
from serviceconnect.models import User, UserRole
from serviceconnect.services.accounts import effective_role

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ("phone_number", "address_line_1", "city", "location_lat", "location_lon")


def profile_view(user: User) -> dict:
    data = {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": effective_role(user),
        "profile_picture_url": user.profile_picture_url,
        "created_at": user.created_at,
        "profile": None,
    }
    if user.role == UserRole.CUSTOMER:
        data["profile"] = {field: getattr(user, field) for field in CUSTOMER_FIELDS}
    return data


def update_profile(db: Session, user: User, email: str, full_name: str | None = None, **details) -> User:
    """Change the account email and contact details.

    Fields passed as None keep their stored value. Contact details apply to
    customers only and are ignored for other roles.
    """
    email = email.strip().lower()
    # An ADMIN_EMAILS address grants admin on login, so it cannot be claimed here.
    if email != user.email and email in parse_admin_emails(get_settings().admin_emails):
        raise AuthorizationError("This email address is reserved.")

    with atomic(db):
        current = db.query(User).filter(User.id == user.id).with_for_update().first()
        if current is None:
            raise NotFound("User not found.")
        taken = db.query(User.id).filter(User.email == email, User.id != current.id).first()
        if taken:
            raise Conflict("Email already in use by another account.")

        current.email = email
        if full_name is not None and full_name.strip():
            current.full_name = full_name.strip()
        if current.role == UserRole.CUSTOMER:
            for field in CUSTOMER_FIELDS:
                value = details.get(field)
                if isinstance(value, str):
                    value = value.strip() or None
                if value is not None:
                    setattr(current, field, value)
        db.flush()
    logger.info("User %s profile updated", current.id)
    return current


def set_profile_picture(db: Session, user: User, url: str) -> str | None:
    """Store the new picture URL and return the one it replaced."""
    with atomic(db):
        current = db.query(User).filter(User.id == user.id).with_for_update().first()
        if current is None:
            raise NotFound("User not found.")
        previous = current.profile_picture_url
        current.profile_picture_url = url
        db.flush()
    return previous
