from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from serviceconnect.core.database import Base
from serviceconnect.models.base import TimestampMixin
from serviceconnect.models.service import provider_services


class Provider(Base, TimestampMixin):
    """Public profile of a provider account. Bookings reference this row, not the user."""

    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    location_lat = Column(Float, nullable=False, default=0)
    location_lon = Column(Float, nullable=False, default=0)
    service_radius_km = Column(Float, nullable=False, default=10)
    payout_upi_id = Column(String(128), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    # Aggregates over reviews with rating > 0, maintained by the review gate.
    average_rating = Column(Numeric(3, 2), nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="provider_profile")
    services = relationship("Service", secondary=provider_services)


Index("ix_providers_verified_rating", Provider.is_verified, Provider.average_rating)
