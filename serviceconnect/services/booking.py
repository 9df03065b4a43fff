"""Booking lifecycle.

    pending_provider --quote--> awaiting_customer_confirmation --confirm--> accepted
          |                                |                                   |
          +--reject--> rejected <--decline-+                             markCompleted
                                                                               v
                                           closed <--settle (payment)-- completed

Every mutation locks the booking row, checks that the caller owns the side
of the booking the action belongs to, then applies a guarded
``UPDATE ... WHERE id = :id AND status = :expected``. Zero affected rows means
the booking was not in the expected state and nothing changed.
"""
from dataclasses import dataclass
from datetime import datetime
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from serviceconnect.core.database import atomic
from serviceconnect.core.errors import AuthorizationError, InvalidTransition, NotFound, ValidationError
from serviceconnect.models import Booking, BookingStatus, Provider, Service, User, UserRole
from serviceconnect.services.wallet import as_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    source: BookingStatus
    target: BookingStatus
    actor: UserRole | None  # None: system (payment settlement)


QUOTE = Transition(BookingStatus.PENDING_PROVIDER, BookingStatus.AWAITING_CUSTOMER_CONFIRMATION, UserRole.PROVIDER)
PROVIDER_REJECT = Transition(BookingStatus.PENDING_PROVIDER, BookingStatus.REJECTED, UserRole.PROVIDER)
CUSTOMER_ACCEPT = Transition(BookingStatus.AWAITING_CUSTOMER_CONFIRMATION, BookingStatus.ACCEPTED, UserRole.CUSTOMER)
CUSTOMER_DECLINE = Transition(BookingStatus.AWAITING_CUSTOMER_CONFIRMATION, BookingStatus.REJECTED, UserRole.CUSTOMER)
MARK_COMPLETED = Transition(BookingStatus.ACCEPTED, BookingStatus.COMPLETED, UserRole.PROVIDER)
SETTLE = Transition(BookingStatus.COMPLETED, BookingStatus.CLOSED, None)

TRANSITIONS = (QUOTE, PROVIDER_REJECT, CUSTOMER_ACCEPT, CUSTOMER_DECLINE, MARK_COMPLETED, SETTLE)

CHAT_ENABLED_STATUSES = frozenset({BookingStatus.ACCEPTED, BookingStatus.COMPLETED, BookingStatus.CLOSED})


def chat_enabled(status: BookingStatus) -> bool:
    return status in CHAT_ENABLED_STATUSES


def allowed_targets(status: BookingStatus) -> set[BookingStatus]:
    return {t.target for t in TRANSITIONS if t.source == status}


@dataclass
class BookingChange:
    booking: Booking
    previous: BookingStatus
    current: BookingStatus


def lock_booking(db: Session, booking_id: int) -> Booking:
    booking = (
        db.query(Booking)
        .filter(Booking.id == booking_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not booking:
        raise NotFound("Booking not found.")
    return booking


def provider_for_user(db: Session, user: User) -> Provider:
    provider = db.query(Provider).filter(Provider.user_id == user.id).first()
    if not provider:
        raise NotFound("Provider profile not found for this logged-in user.")
    return provider


def apply_transition(db: Session, booking: Booking, transition: Transition, **values) -> None:
    """Guarded status flip. Raises InvalidTransition when the row was not in ``transition.source``."""
    stmt = (
        update(Booking)
        .where(Booking.id == booking.id, Booking.status == transition.source)
        .values(status=transition.target, **values)
        .execution_options(synchronize_session=False)
    )
    if "amount" in values:
        stmt = stmt.where(Booking.amount.is_(None))
    result = db.execute(stmt)
    if result.rowcount != 1:
        raise InvalidTransition(
            f"Cannot move booking #{booking.id} from '{booking.status.value}' to '{transition.target.value}'."
        )
    db.refresh(booking)


def create_booking(
    db: Session,
    customer: User,
    *,
    provider_id: int,
    service_id: int,
    scheduled_at: datetime,
    address: str,
    service_description: str,
    customer_notes: str | None = None,
) -> Booking:
    if customer.role != UserRole.CUSTOMER:
        raise AuthorizationError("Access denied. Only customers can create bookings.")
    address = (address or "").strip()
    service_description = (service_description or "").strip()
    if not address or not service_description:
        raise ValidationError("Provider ID, Service ID, scheduled time, address, and description are required.")

    provider = db.query(Provider).filter(Provider.id == provider_id).first()
    service = db.query(Service).filter(Service.id == service_id).first()
    if not provider or not service:
        raise NotFound("Provider or service information not found.")

    with atomic(db):
        booking = Booking(
            customer_id=customer.id,
            provider_id=provider.id,
            service_id=service.id,
            scheduled_at=scheduled_at,
            address=address,
            service_description=service_description,
            customer_notes=customer_notes,
            amount=None,
            status=BookingStatus.PENDING_PROVIDER,
        )
        db.add(booking)
        db.flush()
    logger.info("Booking %s created customer_id=%s provider_id=%s", booking.id, customer.id, provider.id)
    return booking


def _lock_provider_booking(db: Session, booking_id: int, provider_user: User) -> Booking:
    if provider_user.role != UserRole.PROVIDER:
        raise AuthorizationError("Access denied. Only providers can update booking status.")
    provider = provider_for_user(db, provider_user)
    booking = lock_booking(db, booking_id)
    if booking.provider_id != provider.id:
        raise NotFound("Booking not found or not owned by this provider.")
    return booking


def _lock_customer_booking(db: Session, booking_id: int, customer: User) -> Booking:
    if customer.role != UserRole.CUSTOMER:
        raise AuthorizationError("Access denied. Only customers can confirm prices.")
    booking = lock_booking(db, booking_id)
    if booking.customer_id != customer.id:
        raise NotFound("Booking not found or not owned by you.")
    return booking


def quote(db: Session, booking_id: int, provider_user: User, amount) -> BookingChange:
    if amount is None:
        raise ValidationError("Amount is required and must be positive when accepting a service.")
    amount = as_amount(amount)

    with atomic(db):
        booking = _lock_provider_booking(db, booking_id, provider_user)
        previous = booking.status
        apply_transition(db, booking, QUOTE, amount=amount)
    logger.info("Booking %s quoted amount=%s", booking.id, amount)
    return BookingChange(booking, previous, booking.status)


def provider_reject(db: Session, booking_id: int, provider_user: User) -> BookingChange:
    with atomic(db):
        booking = _lock_provider_booking(db, booking_id, provider_user)
        previous = booking.status
        apply_transition(db, booking, PROVIDER_REJECT)
    logger.info("Booking %s rejected by provider", booking.id)
    return BookingChange(booking, previous, booking.status)


def mark_completed(db: Session, booking_id: int, provider_user: User) -> BookingChange:
    with atomic(db):
        booking = _lock_provider_booking(db, booking_id, provider_user)
        previous = booking.status
        apply_transition(db, booking, MARK_COMPLETED)
    logger.info("Booking %s marked completed", booking.id)
    return BookingChange(booking, previous, booking.status)


def confirm_price(db: Session, booking_id: int, customer: User, accepted: bool) -> BookingChange:
    if not isinstance(accepted, bool):
        raise ValidationError("Confirmation status (accepted) must be a boolean.")
    transition = CUSTOMER_ACCEPT if accepted else CUSTOMER_DECLINE
    with atomic(db):
        booking = _lock_customer_booking(db, booking_id, customer)
        previous = booking.status
        apply_transition(db, booking, transition)
    logger.info("Booking %s price %s by customer", booking.id, "accepted" if accepted else "rejected")
    return BookingChange(booking, previous, booking.status)


PROVIDER_ACTIONS = {
    "accepted": "quote",
    "rejected": "reject",
    "completed": "complete",
}


def provider_update(db: Session, booking_id: int, provider_user: User, status: str, amount=None) -> BookingChange:
    """Dispatch the provider-side ``PUT /bookings/{id}`` body onto a transition."""
    if status == BookingStatus.CLOSED.value:
        raise ValidationError("Bookings are closed by payment, not by the provider.")
    action = PROVIDER_ACTIONS.get(status)
    if action is None:
        raise ValidationError("Invalid status update provided.")
    if action == "quote":
        if amount is None:
            raise ValidationError("Amount is required and must be positive when accepting a service.")
        return quote(db, booking_id, provider_user, amount)
    if action == "reject":
        return provider_reject(db, booking_id, provider_user)
    return mark_completed(db, booking_id, provider_user)


def get_party_booking(db: Session, booking_id: int, user: User) -> Booking:
    """Booking visible to ``user`` as its customer or its provider, else 403."""
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is not None:
        if booking.customer_id == user.id:
            return booking
        if booking.provider is not None and booking.provider.user_id == user.id:
            return booking
    raise AuthorizationError("Access denied. You are not a party to this booking.")


def counterparty_user_id(booking: Booking, user: User) -> int:
    if user.id == booking.customer_id:
        return booking.provider.user_id
    return booking.customer_id


def customer_bookings(db: Session, customer: User) -> list[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.customer_id == customer.id)
        .order_by(Booking.scheduled_at.desc())
        .all()
    )


def provider_bookings(db: Session, provider: Provider) -> list[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.provider_id == provider.id)
        .order_by(Booking.scheduled_at.desc())
        .all()
    )


def all_bookings(db: Session) -> list[Booking]:
    return db.query(Booking).order_by(Booking.created_at.desc(), Booking.id.desc()).all()
