import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from serviceconnect.core.database import Base
from serviceconnect.models.base import TimestampMixin


class WalletRequestType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class WalletRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WalletRequest(Base, TimestampMixin):
    __tablename__ = "wallet_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(
        Enum(WalletRequestType, name="walletrequesttype", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    amount = Column(Numeric(12, 2), nullable=False)
    # External payment reference for deposits, payout destination for withdrawals.
    transaction_reference = Column(String(255), nullable=False)
    screenshot_url = Column(String(512), nullable=True)
    status = Column(
        Enum(WalletRequestStatus, name="walletrequeststatus", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=WalletRequestStatus.PENDING,
    )
    rejection_reason = Column(String(255), nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    requested_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", foreign_keys=[user_id])


Index("ix_wallet_requests_status_type", WalletRequest.status, WalletRequest.type)
