from decimal import Decimal, InvalidOperation
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from serviceconnect.core.errors import InsufficientFunds, ValidationError, WalletNotFound
from serviceconnect.models import (
    CREDIT_TYPES,
    DEBIT_TYPES,
    Transaction,
    TransactionType,
    Wallet,
    WalletRequest,
    WalletRequestStatus,
)

logger = logging.getLogger(__name__)


CENT = Decimal("0.01")
# Largest value a Numeric(12, 2) column holds.
MAX_AMOUNT = Decimal("9999999999.99")


def as_amount(value) -> Decimal:
    """Parse a rupee amount: positive, whole paise, within column range."""
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("Invalid amount.") from None
    if not amount.is_finite():
        raise ValidationError("Invalid amount.")
    if amount <= 0:
        raise ValidationError("Amount must be positive.")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"Amount cannot exceed ₹{MAX_AMOUNT}.")
    rounded = amount.quantize(CENT)
    if rounded != amount:
        raise ValidationError("Amount cannot have more than two decimal places.")
    return rounded


def get_or_create_wallet(db: Session, user_id: int) -> Wallet:
    """Return the user's wallet, adding an empty one if missing. Caller commits."""
    wallet = db.query(Wallet).filter(Wallet.user_id == user_id).first()
    if not wallet:
        wallet = Wallet(user_id=user_id, balance=Decimal("0"))
        db.add(wallet)
        db.flush()
    return wallet


def lock_wallet(db: Session, user_id: int) -> Wallet:
    wallet = (
        db.query(Wallet)
        .filter(Wallet.user_id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not wallet:
        raise WalletNotFound(f"Wallet not found for user {user_id}.")
    return wallet


def lock_wallets(db: Session, user_ids) -> dict[int, Wallet]:
    """Lock several wallets in ascending user id order.

    Concurrent callers touching the same pair of wallets always queue on the
    lower id first, so they cannot deadlock each other.
    """
    return {user_id: lock_wallet(db, user_id) for user_id in sorted(set(user_ids))}


def credit(db: Session, user_id: int, amount, tx_type: TransactionType, related_id: int | None = None) -> Transaction:
    if tx_type not in CREDIT_TYPES:
        raise ValueError(f"{tx_type} is not a credit transaction type")
    amount = as_amount(amount)
    wallet = lock_wallet(db, user_id)
    if Decimal(wallet.balance) + amount > MAX_AMOUNT:
        raise ValidationError("Wallet balance limit exceeded.")
    wallet.balance = Decimal(wallet.balance) + amount
    entry = Transaction(user_id=user_id, type=tx_type, amount=amount, related_id=related_id)
    db.add(entry)
    db.flush()
    return entry


def debit(db: Session, user_id: int, amount, tx_type: TransactionType, related_id: int | None = None) -> Transaction:
    if tx_type not in DEBIT_TYPES:
        raise ValueError(f"{tx_type} is not a debit transaction type")
    amount = as_amount(amount)
    wallet = lock_wallet(db, user_id)
    if Decimal(wallet.balance) - amount < 0:
        raise InsufficientFunds(f"Insufficient wallet balance. Required: ₹{amount:.2f}")
    wallet.balance = Decimal(wallet.balance) - amount
    entry = Transaction(user_id=user_id, type=tx_type, amount=amount, related_id=related_id)
    db.add(entry)
    db.flush()
    return entry


def reconcile(db: Session, user_id: int) -> Decimal:
    """Balance implied by the user's transaction log."""
    credits = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.user_id == user_id, Transaction.type.in_(list(CREDIT_TYPES)))
        .scalar()
    )
    debits = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.user_id == user_id, Transaction.type.in_(list(DEBIT_TYPES)))
        .scalar()
    )
    return Decimal(str(credits or 0)) - Decimal(str(debits or 0))


def wallet_summary(db: Session, user_id: int) -> dict:
    wallet = get_or_create_wallet(db, user_id)
    db.commit()
    pending = (
        db.query(func.count(WalletRequest.id))
        .filter(WalletRequest.user_id == user_id, WalletRequest.status == WalletRequestStatus.PENDING)
        .scalar()
        or 0
    )
    return {"balance": Decimal(wallet.balance), "pending_requests_count": int(pending)}


def recent_transactions(db: Session, user_id: int, limit: int = 50) -> list[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.id.desc())
        .limit(limit)
        .all()
    )
