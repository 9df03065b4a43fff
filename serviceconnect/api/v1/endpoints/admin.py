from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from serviceconnect.core.database import get_db
from serviceconnect.dependencies import require_admin
from serviceconnect.models import Booking, Provider, User, WalletRequestStatus, WalletRequestType
from serviceconnect.schemas.admin import (
    AdminBookingOut,
    AdminProviderOut,
    AdminUserOut,
    ApproveResult,
    OverviewMetrics,
    RejectRequestIn,
    RejectResult,
    VerifyProviderIn,
)
from serviceconnect.schemas.contact import ContactMessageOut
from serviceconnect.schemas.wallet import WalletRequestOut
from serviceconnect.services import providers as provider_service
from serviceconnect.services import wallet_requests
from serviceconnect.services.booking import all_bookings
from serviceconnect.services.contact import list_contact_messages

router = APIRouter()


def _coerce_request_status(value: Optional[str]) -> Optional[WalletRequestStatus]:
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    for member in WalletRequestStatus:
        if raw.lower() == member.value.lower() or raw.upper() == member.name:
            return member
    raise HTTPException(status_code=400, detail="Invalid status")


@router.get("/overview-metrics", response_model=OverviewMetrics)
def overview_metrics(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return OverviewMetrics(
        total_users=db.query(func.count(User.id)).scalar() or 0,
        total_bookings=db.query(func.count(Booking.id)).scalar() or 0,
        pending_verification=db.query(func.count(Provider.id)).filter(Provider.is_verified.is_(False)).scalar() or 0,
        pending_deposits=wallet_requests.count_pending(db, WalletRequestType.DEPOSIT),
        pending_withdrawals=wallet_requests.count_pending(db, WalletRequestType.WITHDRAWAL),
    )


@router.get("/wallet-requests", response_model=list[WalletRequestOut])
def list_wallet_requests(
    status: Optional[str] = Query(None),
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    rows = wallet_requests.list_requests(db, _coerce_request_status(status))
    items = []
    for request, email, role in rows:
        item = WalletRequestOut.from_orm(request)
        item.email = email
        item.role = role.value
        items.append(item)
    return items


@router.put("/wallet-requests/{request_id}/approve", response_model=ApproveResult)
def approve_wallet_request(request_id: int, admin=Depends(require_admin), db: Session = Depends(get_db)):
    request, new_balance = wallet_requests.approve(db, request_id, admin)
    return ApproveResult(
        message=f"{request.type.value.capitalize()} request #{request.id} approved.",
        request_id=request.id,
        new_balance=new_balance,
    )


@router.put("/wallet-requests/{request_id}/reject", response_model=RejectResult)
def reject_wallet_request(
    request_id: int,
    payload: Optional[RejectRequestIn] = None,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    reason = payload.reason if payload else None
    request = wallet_requests.reject(db, request_id, admin, reason)
    return RejectResult(
        message=f"Wallet request #{request.id} rejected.",
        request_id=request.id,
        status=request.status,
        rejection_reason=request.rejection_reason,
    )


@router.get("/users", response_model=list[AdminUserOut])
def list_users(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(User).order_by(User.id.desc()).all()


@router.get("/providers", response_model=list[AdminProviderOut])
def list_providers(admin=Depends(require_admin), db: Session = Depends(get_db)):
    rows = (
        db.query(Provider, User.email)
        .join(User, Provider.user_id == User.id)
        .order_by(Provider.is_verified, Provider.id)
        .all()
    )
    return [
        AdminProviderOut(
            id=p.id,
            user_id=p.user_id,
            email=email,
            display_name=p.display_name,
            is_verified=p.is_verified,
            average_rating=p.average_rating or 0,
            review_count=p.review_count or 0,
        )
        for p, email in rows
    ]


@router.get("/bookings", response_model=list[AdminBookingOut])
def list_bookings(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return [
        AdminBookingOut(
            id=b.id,
            provider_name=b.provider.display_name if b.provider else "",
            customer_email=b.customer.email if b.customer else "",
            scheduled_at=b.scheduled_at,
            status=b.status,
            amount=b.amount,
            created_at=b.created_at,
        )
        for b in all_bookings(db)
    ]


@router.put("/providers/{provider_id}/verify")
def verify_provider(
    provider_id: int,
    payload: VerifyProviderIn,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    provider_service.set_verified(db, provider_id, payload.is_verified)
    return {"message": f"Provider {provider_id} verification status set to {str(payload.is_verified).lower()}."}


@router.get("/contact-messages", response_model=list[ContactMessageOut])
def contact_messages(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return list_contact_messages(db)
