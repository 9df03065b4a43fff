import enum
from sqlalchemy import Column, Integer, ForeignKey, Numeric, Enum, Index
from serviceconnect.core.database import Base
from serviceconnect.models.base import TimestampMixin


class TransactionType(str, enum.Enum):
    PAYMENT_SENT = "payment_sent"
    PAYMENT_RECEIVED = "payment_received"
    DEPOSIT_ADMIN_APPROVED = "deposit_admin_approved"
    WITHDRAWAL_SENT = "withdrawal_sent"


CREDIT_TYPES = frozenset({TransactionType.PAYMENT_RECEIVED, TransactionType.DEPOSIT_ADMIN_APPROVED})
DEBIT_TYPES = frozenset({TransactionType.PAYMENT_SENT, TransactionType.WITHDRAWAL_SENT})


class Transaction(Base, TimestampMixin):
    """Append-only record of one wallet movement. Rows are never updated or deleted."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(
        Enum(TransactionType, name="transactiontype", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    amount = Column(Numeric(12, 2), nullable=False)
    # Booking id for payments, wallet request id for deposits/withdrawals.
    related_id = Column(Integer, nullable=True)


Index("ix_transactions_user_type", Transaction.user_id, Transaction.type)
