from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, StrictBool, validator

from serviceconnect.models.booking import BookingStatus


class BookingCreate(BaseModel):
    provider_id: int
    service_id: int
    scheduled_at: datetime
    address: str
    service_description: str
    customer_notes: Optional[str] = None

    @validator("address", "service_description")
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Provider ID, Service ID, scheduled time, address, and description are required.")
        return value.strip()


class BookingStatusUpdate(BaseModel):
    status: str
    amount: Optional[Decimal] = None


class ConfirmPriceIn(BaseModel):
    accepted: StrictBool


class BookingOut(BaseModel):
    id: int
    customer_id: int
    provider_id: int
    service_id: int
    scheduled_at: datetime
    address: str
    service_description: str
    customer_notes: Optional[str] = None
    amount: Optional[Decimal] = None
    status: BookingStatus
    created_at: Optional[datetime] = None

    class Config:
        orm_mode = True


class BookingListItem(BookingOut):
    service_name: Optional[str] = None
    provider_name: Optional[str] = None
    customer_email: Optional[str] = None


class BookingChangeOut(BaseModel):
    message: str
    booking: BookingOut


class PaymentIn(BaseModel):
    booking_id: int


class PaymentOut(BaseModel):
    message: str
    booking_id: int
    payment_id: int
    reference: str
    amount: Decimal


class ReviewIn(BaseModel):
    booking_id: int
    # Left loose so bools/floats reach the rating check and produce its message.
    rating: Any
    comment: Optional[str] = None


class ReviewOut(BaseModel):
    message: str
    review_id: int
    average_rating: Decimal
    review_count: int
