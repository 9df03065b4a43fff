"""Wallet-funded payment for a completed booking.

The customer debit, the provider credit, the payment row and the
``completed -> closed`` flip commit together or not at all.
"""
from decimal import Decimal
import logging
import secrets
import time

from sqlalchemy.orm import Session

from serviceconnect.core.database import atomic
from serviceconnect.core.errors import AuthorizationError, InvalidTransition, NotFound, ValidationError
from serviceconnect.models import BookingStatus, Payment, PaymentStatus, Provider, TransactionType
from serviceconnect.services.booking import SETTLE, apply_transition, lock_booking
from serviceconnect.services.wallet import credit, debit, lock_wallets

logger = logging.getLogger(__name__)


def generate_payment_reference() -> str:
    return f"txn_{int(time.time() * 1000)}{secrets.token_hex(3)}"


def settle(db: Session, booking_id: int, customer_id: int) -> Payment:
    with atomic(db):
        booking = lock_booking(db, booking_id)
        if booking.customer_id != customer_id:
            raise AuthorizationError("Access denied. You do not own this booking.")
        if booking.status != BookingStatus.COMPLETED:
            raise InvalidTransition(f"Cannot process payment. Booking status is '{booking.status.value}'.")
        amount = Decimal(booking.amount) if booking.amount is not None else Decimal("0")
        if amount <= 0:
            raise ValidationError("Payment amount is invalid or zero.")

        provider = db.query(Provider).filter(Provider.id == booking.provider_id).first()
        if provider is None:
            raise NotFound("Provider account user ID not found.")

        lock_wallets(db, [customer_id, provider.user_id])
        debit(db, customer_id, amount, TransactionType.PAYMENT_SENT, related_id=booking.id)
        credit(db, provider.user_id, amount, TransactionType.PAYMENT_RECEIVED, related_id=booking.id)

        payment = Payment(
            booking_id=booking.id,
            amount=amount,
            status=PaymentStatus.SUCCEEDED,
            reference=generate_payment_reference(),
        )
        db.add(payment)
        db.flush()
        apply_transition(db, booking, SETTLE)

    logger.info(
        "Booking %s settled amount=%s customer_id=%s provider_user_id=%s reference=%s",
        booking.id,
        amount,
        customer_id,
        provider.user_id,
        payment.reference,
    )
    return payment
