import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from serviceconnect.core.database import Base
from serviceconnect.models.base import TimestampMixin


class PaymentStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    # One payment per booking; the unique key backs up the settlement status guard.
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        Enum(PaymentStatus, name="paymentstatus", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentStatus.SUCCEEDED,
    )
    reference = Column(String(64), unique=True, nullable=False, index=True)
    paid_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    booking = relationship("Booking", back_populates="payment")
