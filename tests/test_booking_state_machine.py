from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import make_booking, make_provider, make_user
from serviceconnect.core.errors import AuthorizationError, InvalidTransition, NotFound, ValidationError
from serviceconnect.models import Booking, BookingStatus
from serviceconnect.services import booking as booking_service


def _reload(db, booking_id):
    db.expire_all()
    return db.get(Booking, booking_id)


def test_transition_table_shape():
    assert booking_service.allowed_targets(BookingStatus.PENDING_PROVIDER) == {
        BookingStatus.AWAITING_CUSTOMER_CONFIRMATION,
        BookingStatus.REJECTED,
    }
    assert booking_service.allowed_targets(BookingStatus.AWAITING_CUSTOMER_CONFIRMATION) == {
        BookingStatus.ACCEPTED,
        BookingStatus.REJECTED,
    }
    assert booking_service.allowed_targets(BookingStatus.ACCEPTED) == {BookingStatus.COMPLETED}
    assert booking_service.allowed_targets(BookingStatus.COMPLETED) == {BookingStatus.CLOSED}
    assert booking_service.allowed_targets(BookingStatus.CLOSED) == set()
    assert booking_service.allowed_targets(BookingStatus.REJECTED) == set()


def test_chat_enabled_states():
    enabled = {s for s in BookingStatus if booking_service.chat_enabled(s)}
    assert enabled == {BookingStatus.ACCEPTED, BookingStatus.COMPLETED, BookingStatus.CLOSED}


def test_create_booking_starts_pending_without_amount(db, marketplace):
    booking = booking_service.create_booking(
        db,
        marketplace["customer"],
        provider_id=marketplace["provider"].id,
        service_id=marketplace["service"].id,
        scheduled_at=datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc),
        address=" 5 Park Street ",
        service_description="Fan not working",
    )
    assert booking.status == BookingStatus.PENDING_PROVIDER
    assert booking.amount is None
    assert booking.address == "5 Park Street"


def test_create_booking_requires_known_provider_and_service(db, marketplace):
    with pytest.raises(NotFound):
        booking_service.create_booking(
            db,
            marketplace["customer"],
            provider_id=999,
            service_id=marketplace["service"].id,
            scheduled_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
            address="x",
            service_description="y",
        )
    with pytest.raises(AuthorizationError):
        booking_service.create_booking(
            db,
            marketplace["provider_user"],
            provider_id=marketplace["provider"].id,
            service_id=marketplace["service"].id,
            scheduled_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
            address="x",
            service_description="y",
        )


def test_full_provider_and_customer_flow(db, marketplace):
    booking = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])

    change = booking_service.provider_update(db, booking.id, marketplace["provider_user"], "accepted", Decimal("500"))
    assert change.previous == BookingStatus.PENDING_PROVIDER
    assert change.current == BookingStatus.AWAITING_CUSTOMER_CONFIRMATION
    assert Decimal(change.booking.amount) == Decimal("500")

    change = booking_service.confirm_price(db, booking.id, marketplace["customer"], True)
    assert change.current == BookingStatus.ACCEPTED

    change = booking_service.provider_update(db, booking.id, marketplace["provider_user"], "completed")
    assert change.current == BookingStatus.COMPLETED
    assert Decimal(_reload(db, booking.id).amount) == Decimal("500")


def test_mark_completed_from_pending_is_refused(db, marketplace):
    booking = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])

    with pytest.raises(InvalidTransition):
        booking_service.mark_completed(db, booking.id, marketplace["provider_user"])

    assert _reload(db, booking.id).status == BookingStatus.PENDING_PROVIDER


def test_amount_is_immutable_once_quoted(db, marketplace):
    booking = make_booking(
        db,
        marketplace["customer"],
        marketplace["provider"],
        marketplace["service"],
        status=BookingStatus.AWAITING_CUSTOMER_CONFIRMATION,
        amount=500,
    )

    with pytest.raises(InvalidTransition):
        booking_service.quote(db, booking.id, marketplace["provider_user"], 900)

    reloaded = _reload(db, booking.id)
    assert Decimal(reloaded.amount) == Decimal("500")
    assert reloaded.status == BookingStatus.AWAITING_CUSTOMER_CONFIRMATION


def test_quote_guard_requires_null_amount(db, marketplace):
    # A pending booking that somehow carries an amount still cannot be re-quoted.
    booking = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"], amount=10)

    with pytest.raises(InvalidTransition):
        booking_service.quote(db, booking.id, marketplace["provider_user"], 900)
    assert Decimal(_reload(db, booking.id).amount) == Decimal("10")


def test_quote_requires_positive_amount(db, marketplace):
    booking = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])
    with pytest.raises(ValidationError):
        booking_service.provider_update(db, booking.id, marketplace["provider_user"], "accepted")
    with pytest.raises(ValidationError):
        booking_service.quote(db, booking.id, marketplace["provider_user"], -1)
    with pytest.raises(ValidationError):
        booking_service.quote(db, booking.id, marketplace["provider_user"], "abc")


def test_provider_cannot_close_or_set_unknown_status(db, marketplace):
    booking = make_booking(
        db, marketplace["customer"], marketplace["provider"], marketplace["service"], status=BookingStatus.COMPLETED, amount=10
    )
    with pytest.raises(ValidationError):
        booking_service.provider_update(db, booking.id, marketplace["provider_user"], "closed")
    with pytest.raises(ValidationError):
        booking_service.provider_update(db, booking.id, marketplace["provider_user"], "done")
    assert _reload(db, booking.id).status == BookingStatus.COMPLETED


def test_customer_decline_rejects_booking(db, marketplace):
    booking = make_booking(
        db,
        marketplace["customer"],
        marketplace["provider"],
        marketplace["service"],
        status=BookingStatus.AWAITING_CUSTOMER_CONFIRMATION,
        amount=300,
    )
    change = booking_service.confirm_price(db, booking.id, marketplace["customer"], False)
    assert change.current == BookingStatus.REJECTED

    with pytest.raises(InvalidTransition):
        booking_service.confirm_price(db, booking.id, marketplace["customer"], True)


def test_confirm_price_requires_strict_bool(db, marketplace):
    booking = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])
    with pytest.raises(ValidationError):
        booking_service.confirm_price(db, booking.id, marketplace["customer"], "yes")


def test_other_parties_see_not_found(db, marketplace):
    booking = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])
    other_provider_user, _ = make_provider(db, email="other@example.com")
    other_customer = make_user(db, "other-cust@example.com")

    with pytest.raises(NotFound):
        booking_service.provider_reject(db, booking.id, other_provider_user)
    with pytest.raises(NotFound):
        booking_service.confirm_price(db, booking.id, other_customer, True)
    with pytest.raises(AuthorizationError):
        booking_service.get_party_booking(db, booking.id, other_customer)
    assert _reload(db, booking.id).status == BookingStatus.PENDING_PROVIDER


def test_listings(db, marketplace):
    first = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])
    second = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])

    assert {b.id for b in booking_service.customer_bookings(db, marketplace["customer"])} == {first.id, second.id}
    assert {b.id for b in booking_service.provider_bookings(db, marketplace["provider"])} == {first.id, second.id}
    assert len(booking_service.all_bookings(db)) == 2
