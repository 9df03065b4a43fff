from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from serviceconnect.core.database import get_db
from serviceconnect.dependencies import require_customer
from serviceconnect.models import Booking, User
from serviceconnect.schemas.booking import PaymentIn, PaymentOut, ReviewIn, ReviewOut
from serviceconnect.services import notifications
from serviceconnect.services.reviews import submit_review
from serviceconnect.services.settlement import settle

router = APIRouter()


@router.post("/payments", response_model=PaymentOut)
def pay_booking(payload: PaymentIn, user: User = Depends(require_customer), db: Session = Depends(get_db)):
    payment = settle(db, payload.booking_id, user.id)
    booking = db.query(Booking).filter(Booking.id == payment.booking_id).first()
    notifications.notify_payment(db, booking, payment.reference)
    return PaymentOut(
        message="Payment processed successfully. Booking is now closed.",
        booking_id=payment.booking_id,
        payment_id=payment.id,
        reference=payment.reference,
        amount=payment.amount,
    )


@router.post("/reviews", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def post_review(payload: ReviewIn, user: User = Depends(require_customer), db: Session = Depends(get_db)):
    review, provider = submit_review(db, payload.booking_id, user.id, payload.rating, payload.comment)
    notifications.notify_review(db, provider, payload.booking_id, review.rating, review.comment)
    return ReviewOut(
        message="Review submitted successfully.",
        review_id=review.id,
        average_rating=provider.average_rating,
        review_count=provider.review_count,
    )
