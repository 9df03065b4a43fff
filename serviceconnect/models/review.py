from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from serviceconnect.core.database import Base
from serviceconnect.models.base import TimestampMixin


class Review(Base, TimestampMixin):
    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating >= 0 AND rating <= 5", name="ck_reviews_rating_range"),)

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False)
    # 0 means a comment without a score; it is excluded from the provider average.
    rating = Column(Integer, nullable=False, default=0)
    comment = Column(Text, nullable=True)

    booking = relationship("Booking", back_populates="review")


Index("ix_reviews_provider_rating", Review.provider_id, Review.rating)
