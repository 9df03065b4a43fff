from decimal import Decimal

import pytest

from conftest import make_booking, make_provider, make_user
from serviceconnect.core.errors import (
    AuthorizationError,
    InsufficientFunds,
    InvalidTransition,
    ValidationError,
    WalletNotFound,
)
from serviceconnect.models import Booking, BookingStatus, Payment, PaymentStatus, Transaction, TransactionType, Wallet
from serviceconnect.services import settlement
from serviceconnect.services.wallet import reconcile


def _balance(db, user_id):
    return Decimal(db.query(Wallet).filter(Wallet.user_id == user_id).one().balance)


def _completed(db, marketplace, amount=500):
    return make_booking(
        db,
        marketplace["customer"],
        marketplace["provider"],
        marketplace["service"],
        status=BookingStatus.COMPLETED,
        amount=amount,
    )


def test_settlement_moves_money_and_closes_booking(db, marketplace):
    booking = _completed(db, marketplace)
    customer = marketplace["customer"]
    provider_user = marketplace["provider_user"]

    payment = settlement.settle(db, booking.id, customer.id)

    db.expire_all()
    assert payment.status == PaymentStatus.SUCCEEDED
    assert payment.reference.startswith("txn_")
    assert Decimal(payment.amount) == Decimal("500")
    assert db.get(Booking, booking.id).status == BookingStatus.CLOSED
    assert _balance(db, customer.id) == Decimal("500")
    assert _balance(db, provider_user.id) == Decimal("500")
    assert db.query(Payment).filter(Payment.booking_id == booking.id).count() == 1

    sent = db.query(Transaction).filter(Transaction.user_id == customer.id).one()
    received = db.query(Transaction).filter(Transaction.user_id == provider_user.id).one()
    assert (sent.type, sent.related_id) == (TransactionType.PAYMENT_SENT, booking.id)
    assert (received.type, received.related_id) == (TransactionType.PAYMENT_RECEIVED, booking.id)


def test_second_settlement_is_refused(db, marketplace):
    booking = _completed(db, marketplace)
    settlement.settle(db, booking.id, marketplace["customer"].id)

    with pytest.raises(InvalidTransition):
        settlement.settle(db, booking.id, marketplace["customer"].id)

    db.expire_all()
    assert _balance(db, marketplace["customer"].id) == Decimal("500")
    assert db.query(Payment).count() == 1


def test_insufficient_funds_changes_nothing(db, marketplace):
    booking = _completed(db, marketplace, amount=1500)

    with pytest.raises(InsufficientFunds):
        settlement.settle(db, booking.id, marketplace["customer"].id)

    db.expire_all()
    assert db.get(Booking, booking.id).status == BookingStatus.COMPLETED
    assert _balance(db, marketplace["customer"].id) == Decimal("1000")
    assert db.query(Transaction).count() == 0
    assert db.query(Payment).count() == 0


def test_failure_after_debit_rolls_everything_back(db, marketplace, monkeypatch):
    booking = _completed(db, marketplace)

    def _boom(*args, **kwargs):
        raise RuntimeError("credit failed")

    monkeypatch.setattr(settlement, "credit", _boom)

    with pytest.raises(RuntimeError):
        settlement.settle(db, booking.id, marketplace["customer"].id)

    db.expire_all()
    assert db.get(Booking, booking.id).status == BookingStatus.COMPLETED
    assert _balance(db, marketplace["customer"].id) == Decimal("1000")
    assert _balance(db, marketplace["provider_user"].id) == Decimal("0")
    assert db.query(Transaction).count() == 0
    assert reconcile(db, marketplace["customer"].id) == Decimal("0")


def test_missing_provider_wallet_aborts(db, marketplace):
    service = marketplace["service"]
    walletless_user, walletless_provider = make_provider(db, email="nowallet@example.com", balance=None, services=[service])
    booking = make_booking(
        db, marketplace["customer"], walletless_provider, service, status=BookingStatus.COMPLETED, amount=200
    )

    with pytest.raises(WalletNotFound):
        settlement.settle(db, booking.id, marketplace["customer"].id)

    db.expire_all()
    assert _balance(db, marketplace["customer"].id) == Decimal("1000")
    assert db.get(Booking, booking.id).status == BookingStatus.COMPLETED


def test_only_the_owner_can_pay(db, marketplace):
    booking = _completed(db, marketplace)
    stranger = make_user(db, "stranger@example.com", balance=5000)

    with pytest.raises(AuthorizationError):
        settlement.settle(db, booking.id, stranger.id)


@pytest.mark.parametrize(
    "status",
    [BookingStatus.PENDING_PROVIDER, BookingStatus.ACCEPTED, BookingStatus.REJECTED],
)
def test_only_completed_bookings_settle(db, marketplace, status):
    booking = make_booking(
        db, marketplace["customer"], marketplace["provider"], marketplace["service"], status=status, amount=100
    )
    with pytest.raises(InvalidTransition):
        settlement.settle(db, booking.id, marketplace["customer"].id)


def test_zero_amount_is_invalid(db, marketplace):
    booking = make_booking(
        db, marketplace["customer"], marketplace["provider"], marketplace["service"], status=BookingStatus.COMPLETED
    )
    with pytest.raises(ValidationError):
        settlement.settle(db, booking.id, marketplace["customer"].id)
