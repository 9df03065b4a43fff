import enum
from sqlalchemy import Column, Integer, String, Boolean, Enum, Index, DateTime, Float
from sqlalchemy.orm import relationship
from serviceconnect.core.database import Base
from serviceconnect.models.base import TimestampMixin


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    PROVIDER = "provider"
    ADMIN = "admin"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, values_callable=lambda e: [m.value for m in e]), nullable=False, default=UserRole.CUSTOMER)
    is_active = Column(Boolean, default=True, nullable=False)
    # Flipped by OTP verification; unverified accounts cannot log in.
    is_verified = Column(Boolean, default=False, nullable=False)
    otp_code = Column(String(12), nullable=True)
    otp_expires_at = Column(DateTime(timezone=True), nullable=True)
    profile_picture_url = Column(String(512), nullable=True)
    # Contact details; only customers fill these in.
    phone_number = Column(String(32), nullable=True)
    address_line_1 = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    location_lat = Column(Float, nullable=True)
    location_lon = Column(Float, nullable=True)

    wallet = relationship("Wallet", back_populates="user", uselist=False)
    provider_profile = relationship("Provider", back_populates="user", uselist=False)


Index("ix_users_role_active", User.role, User.is_active)
