"""Customer deposit and provider withdrawal requests, resolved by an admin.

Approval is the only path besides booking settlement that moves wallet
balances. A request is resolved exactly once: ``pending -> approved`` or
``pending -> rejected``.
"""
from datetime import datetime, timezone
from decimal import Decimal
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from serviceconnect.core.database import atomic
from serviceconnect.core.errors import (
    AuthorizationError,
    InsufficientFunds,
    NotFound,
    RequestAlreadyProcessed,
    ValidationError,
)
from serviceconnect.models import (
    TransactionType,
    User,
    UserRole,
    WalletRequest,
    WalletRequestStatus,
    WalletRequestType,
)
from serviceconnect.services.wallet import as_amount, credit, debit, lock_wallet

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Rejected by Admin."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_reference(value: str | None, message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(message)
    return text[:255]


def submit_deposit(db: Session, user: User, amount, reference: str | None, screenshot_url: str) -> WalletRequest:
    if user.role != UserRole.CUSTOMER:
        raise AuthorizationError("Access denied. Only customers can request deposits.")
    amount = as_amount(amount)
    reference = _require_reference(reference, "UPI Transaction Reference is required.")
    if not screenshot_url:
        raise ValidationError("Screenshot proof is required.")

    with atomic(db):
        request = WalletRequest(
            user_id=user.id,
            type=WalletRequestType.DEPOSIT,
            amount=amount,
            transaction_reference=reference,
            screenshot_url=screenshot_url,
            status=WalletRequestStatus.PENDING,
        )
        db.add(request)
        db.flush()
    logger.info("Deposit request %s submitted user_id=%s amount=%s", request.id, user.id, amount)
    return request


def submit_withdrawal(db: Session, user: User, amount, payout_details: str | None) -> WalletRequest:
    if user.role != UserRole.PROVIDER:
        raise AuthorizationError("Access denied. Only providers can request withdrawals.")
    amount = as_amount(amount)
    payout_details = _require_reference(payout_details, "UPI ID or Bank Details are required for withdrawal.")

    with atomic(db):
        # Advisory only: approval re-checks the balance under its own lock.
        wallet = lock_wallet(db, user.id)
        if amount > Decimal(wallet.balance):
            raise InsufficientFunds("Insufficient wallet balance for withdrawal request.")
        request = WalletRequest(
            user_id=user.id,
            type=WalletRequestType.WITHDRAWAL,
            amount=amount,
            transaction_reference=payout_details,
            status=WalletRequestStatus.PENDING,
        )
        db.add(request)
        db.flush()
    logger.info("Withdrawal request %s submitted user_id=%s amount=%s", request.id, user.id, amount)
    return request


def _lock_request(db: Session, request_id: int) -> WalletRequest:
    request = (
        db.query(WalletRequest)
        .filter(WalletRequest.id == request_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not request:
        raise NotFound("Wallet request not found.")
    if request.status != WalletRequestStatus.PENDING:
        raise RequestAlreadyProcessed(f"Wallet request #{request_id} is already {request.status.value}.")
    return request


def approve(db: Session, request_id: int, admin: User) -> tuple[WalletRequest, Decimal]:
    """Apply the request to the owner's wallet and mark it approved.

    Returns the request and the owner's new balance. If a withdrawal would
    overdraw the wallet the whole unit rolls back and the request stays pending.
    """
    with atomic(db):
        request = _lock_request(db, request_id)
        wallet = lock_wallet(db, request.user_id)
        if request.type == WalletRequestType.DEPOSIT:
            credit(db, request.user_id, request.amount, TransactionType.DEPOSIT_ADMIN_APPROVED, related_id=request.id)
        else:
            try:
                debit(db, request.user_id, request.amount, TransactionType.WITHDRAWAL_SENT, related_id=request.id)
            except InsufficientFunds:
                raise InsufficientFunds("Withdrawal failed: Insufficient funds or concurrent modification.") from None
        request.status = WalletRequestStatus.APPROVED
        request.processed_at = _utcnow()
        request.processed_by = admin.id
        db.flush()
        new_balance = Decimal(wallet.balance)

    logger.info(
        "Wallet request %s (%s) approved by admin_id=%s new_balance=%s",
        request.id,
        request.type.value,
        admin.id,
        new_balance,
    )
    return request, new_balance


def reject(db: Session, request_id: int, admin: User, reason: str | None = None) -> WalletRequest:
    with atomic(db):
        request = _lock_request(db, request_id)
        request.status = WalletRequestStatus.REJECTED
        request.rejection_reason = (reason or "").strip()[:255] or DEFAULT_REJECTION_REASON
        request.processed_at = _utcnow()
        request.processed_by = admin.id
        db.flush()
    logger.info("Wallet request %s rejected by admin_id=%s", request.id, admin.id)
    return request


def list_requests(db: Session, status: WalletRequestStatus | None = None) -> list[tuple[WalletRequest, str, UserRole]]:
    query = db.query(WalletRequest, User.email, User.role).join(User, WalletRequest.user_id == User.id)
    if status is not None:
        query = query.filter(WalletRequest.status == status)
    return query.order_by(WalletRequest.status, WalletRequest.requested_at.asc()).all()


def count_pending(db: Session, request_type: WalletRequestType) -> int:
    return (
        db.query(func.count(WalletRequest.id))
        .filter(WalletRequest.status == WalletRequestStatus.PENDING, WalletRequest.type == request_type)
        .scalar()
        or 0
    )
