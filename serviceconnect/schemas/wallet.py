from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, validator

from serviceconnect.models.transaction import TransactionType
from serviceconnect.models.wallet_request import WalletRequestStatus, WalletRequestType


class WalletOut(BaseModel):
    message: str = "Wallet balance retrieved successfully."
    balance: Decimal
    pending_requests_count: int


class TransactionOut(BaseModel):
    id: int
    type: TransactionType
    amount: Decimal
    related_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        orm_mode = True


class WithdrawalRequestIn(BaseModel):
    amount: Decimal
    transaction_reference: str

    @validator("amount")
    def _positive(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("Invalid withdrawal amount.")
        return value


class WalletRequestCreated(BaseModel):
    message: str
    request_id: int


class WalletRequestOut(BaseModel):
    id: int
    user_id: int
    type: WalletRequestType
    amount: Decimal
    transaction_reference: Optional[str] = None
    screenshot_url: Optional[str] = None
    status: WalletRequestStatus
    rejection_reason: Optional[str] = None
    requested_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    email: Optional[str] = None
    role: Optional[str] = None

    class Config:
        orm_mode = True
