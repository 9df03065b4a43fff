from decimal import Decimal
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from serviceconnect.core.database import atomic
from serviceconnect.core.errors import NotFound, ValidationError
from serviceconnect.models import Booking, BookingStatus, Provider, Service, Transaction, TransactionType, User
from serviceconnect.services.booking import provider_for_user
from serviceconnect.services.wallet import get_or_create_wallet

logger = logging.getLogger(__name__)

EARNING_TYPES = (TransactionType.PAYMENT_RECEIVED, TransactionType.DEPOSIT_ADMIN_APPROVED)
_UNSET = object()


def update_profile(
    db: Session,
    user: User,
    *,
    display_name: str,
    bio: str,
    service_ids: list[int],
    location_lat: float | None = None,
    location_lon: float | None = None,
    service_radius_km: float | None = None,
    payout_upi_id=_UNSET,
) -> Provider:
    """Replace the provider's profile fields and offered services.

    ``payout_upi_id`` is left untouched unless passed; passing an empty value is an error.
    """
    display_name = (display_name or "").strip()
    bio = (bio or "").strip()
    if not display_name or not bio or not service_ids:
        raise ValidationError("Display name, bio, and at least one service ID are required.")
    if payout_upi_id is not _UNSET and not (payout_upi_id or "").strip():
        raise ValidationError("Payout UPI ID is required.")

    with atomic(db):
        provider = provider_for_user(db, user)
        services = db.query(Service).filter(Service.id.in_(set(service_ids))).all()
        if len(services) != len(set(service_ids)):
            raise NotFound("One or more services were not found.")

        provider.display_name = display_name
        provider.bio = bio
        if location_lat is not None:
            provider.location_lat = location_lat
        if location_lon is not None:
            provider.location_lon = location_lon
        if service_radius_km is not None:
            provider.service_radius_km = service_radius_km
        if payout_upi_id is not _UNSET:
            provider.payout_upi_id = payout_upi_id.strip()
        provider.services = services
        db.flush()
    logger.info("Provider %s profile updated services=%s", provider.id, sorted(service_ids))
    return provider


def earnings(db: Session, user: User) -> dict:
    provider = provider_for_user(db, user)
    wallet = get_or_create_wallet(db, user.id)
    db.commit()
    completed_jobs = (
        db.query(func.count(Booking.id))
        .filter(
            Booking.provider_id == provider.id,
            Booking.status == BookingStatus.CLOSED,
            Booking.amount.isnot(None),
        )
        .scalar()
        or 0
    )
    total = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.user_id == user.id, Transaction.type.in_(EARNING_TYPES))
        .scalar()
    )
    return {
        "wallet_balance": Decimal(wallet.balance),
        "average_rating": Decimal(provider.average_rating or 0),
        "review_count": int(provider.review_count or 0),
        "completed_jobs": int(completed_jobs),
        "total_earnings": Decimal(str(total or 0)),
    }


def set_verified(db: Session, provider_id: int, is_verified: bool) -> Provider:
    if not isinstance(is_verified, bool):
        raise ValidationError("Verification status must be a boolean.")
    with atomic(db):
        provider = db.query(Provider).filter(Provider.id == provider_id).first()
        if not provider:
            raise NotFound("Provider not found.")
        provider.is_verified = is_verified
        db.flush()
    logger.info("Provider %s verification set to %s", provider_id, is_verified)
    return provider
