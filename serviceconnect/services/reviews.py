from decimal import Decimal, ROUND_HALF_UP
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from serviceconnect.core.database import atomic
from serviceconnect.core.errors import AuthorizationError, Conflict, NotEligible, ValidationError
from serviceconnect.models import BookingStatus, Payment, PaymentStatus, Provider, Review
from serviceconnect.services.booking import lock_booking

logger = logging.getLogger(__name__)


def _validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise ValidationError("Booking ID and a valid rating (0-5) are required for submission.")
    if rating != int(rating) or rating < 0 or rating > 5:
        raise ValidationError("Booking ID and a valid rating (0-5) are required for submission.")
    return int(rating)


def provider_rating_aggregate(db: Session, provider_id: int) -> tuple[Decimal, int]:
    """Mean and count over scored reviews; zero ratings are comment-only and skipped."""
    avg_rating, review_count = (
        db.query(func.avg(Review.rating), func.count(Review.id))
        .filter(Review.provider_id == provider_id, Review.rating > 0)
        .one()
    )
    if not review_count:
        return Decimal("0.00"), 0
    average = Decimal(str(avg_rating)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return average, int(review_count)


def submit_review(db: Session, booking_id: int, customer_id: int, rating, comment: str | None = None) -> tuple[Review, Provider]:
    rating = _validate_rating(rating)
    comment = (comment or "").strip() or None

    try:
        with atomic(db):
            booking = lock_booking(db, booking_id)
            if booking.customer_id != customer_id:
                raise AuthorizationError("Access denied. Booking not found or not owned by you.")
            paid = (
                db.query(Payment.id)
                .filter(Payment.booking_id == booking.id, Payment.status == PaymentStatus.SUCCEEDED)
                .first()
            )
            if booking.status != BookingStatus.CLOSED or paid is None:
                raise NotEligible("Cannot review unpaid or incomplete bookings.")
            if db.query(Review.id).filter(Review.booking_id == booking.id).first() is not None:
                raise Conflict("This booking has already been reviewed.")

            # Serializes aggregate recomputation for concurrent reviews of one provider.
            provider = (
                db.query(Provider)
                .filter(Provider.id == booking.provider_id)
                .with_for_update()
                .populate_existing()
                .one()
            )
            review = Review(
                booking_id=booking.id,
                customer_id=customer_id,
                provider_id=provider.id,
                rating=rating,
                comment=comment,
            )
            db.add(review)
            db.flush()

            provider.average_rating, provider.review_count = provider_rating_aggregate(db, provider.id)
            db.flush()
    except IntegrityError:
        raise Conflict("This booking has already been reviewed.") from None

    logger.info(
        "Review %s stored booking_id=%s provider_id=%s rating=%s average=%s",
        review.id,
        booking_id,
        provider.id,
        rating,
        provider.average_rating,
    )
    return review, provider
