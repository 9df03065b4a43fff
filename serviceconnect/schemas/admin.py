from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, StrictBool

from serviceconnect.models.booking import BookingStatus
from serviceconnect.models.user import UserRole
from serviceconnect.models.wallet_request import WalletRequestStatus


class OverviewMetrics(BaseModel):
    total_users: int
    total_bookings: int
    pending_verification: int
    pending_deposits: int
    pending_withdrawals: int


class RejectRequestIn(BaseModel):
    reason: Optional[str] = None


class ApproveResult(BaseModel):
    message: str
    request_id: int
    new_balance: Decimal


class RejectResult(BaseModel):
    message: str
    request_id: int
    status: WalletRequestStatus
    rejection_reason: str


class AdminUserOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: UserRole
    is_active: bool
    is_verified: bool
    created_at: Optional[datetime] = None

    class Config:
        orm_mode = True


class AdminProviderOut(BaseModel):
    id: int
    user_id: int
    email: str
    display_name: str
    is_verified: bool
    average_rating: Decimal
    review_count: int


class AdminBookingOut(BaseModel):
    id: int
    provider_name: str
    customer_email: str
    scheduled_at: datetime
    status: BookingStatus
    amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None


class VerifyProviderIn(BaseModel):
    is_verified: StrictBool
