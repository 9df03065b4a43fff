import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from serviceconnect.core.database import Base
from serviceconnect.models.base import TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING_PROVIDER = "pending_provider"
    AWAITING_CUSTOMER_CONFIRMATION = "awaiting_customer_confirmation"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CLOSED = "closed"
    REJECTED = "rejected"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    address = Column(String(512), nullable=False)
    service_description = Column(Text, nullable=False)
    customer_notes = Column(Text, nullable=True)
    # Set once by the provider quote, never changed afterwards.
    amount = Column(Numeric(12, 2), nullable=True)
    status = Column(
        Enum(BookingStatus, name="bookingstatus", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BookingStatus.PENDING_PROVIDER,
    )

    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("Provider")
    service = relationship("Service")
    payment = relationship("Payment", back_populates="booking", uselist=False)
    review = relationship("Review", back_populates="booking", uselist=False)


Index("ix_bookings_provider_status", Booking.provider_id, Booking.status)
Index("ix_bookings_customer_status", Booking.customer_id, Booking.status)
