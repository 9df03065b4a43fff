from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from serviceconnect.core.database import get_db
from serviceconnect.dependencies import require_provider
from serviceconnect.middlewares.rate_limit import limiter
from serviceconnect.models import Provider, User
from serviceconnect.schemas.booking import BookingListItem
from serviceconnect.schemas.catalog import EarningsOut, ProviderProfileIn, ProviderProfileOut
from serviceconnect.schemas.wallet import WalletRequestCreated, WithdrawalRequestIn
from serviceconnect.services import providers
from serviceconnect.services.booking import provider_bookings, provider_for_user
from serviceconnect.services.wallet_requests import submit_withdrawal

router = APIRouter()


def _profile_out(provider: Provider) -> ProviderProfileOut:
    return ProviderProfileOut(
        id=provider.id,
        user_id=provider.user_id,
        display_name=provider.display_name,
        bio=provider.bio,
        location_lat=provider.location_lat,
        location_lon=provider.location_lon,
        service_radius_km=provider.service_radius_km,
        payout_upi_id=provider.payout_upi_id,
        is_verified=provider.is_verified,
        average_rating=provider.average_rating or 0,
        review_count=provider.review_count or 0,
        service_ids=sorted(s.id for s in provider.services),
    )


@router.get("/profile")
def get_profile(user: User = Depends(require_provider), db: Session = Depends(get_db)):
    provider = provider_for_user(db, user)
    return {"message": "Provider profile retrieved successfully.", "provider_profile": _profile_out(provider)}


@router.post("/profile")
def update_profile(payload: ProviderProfileIn, user: User = Depends(require_provider), db: Session = Depends(get_db)):
    extra = {}
    if "payout_upi_id" in payload.__fields_set__:
        extra["payout_upi_id"] = payload.payout_upi_id
    provider = providers.update_profile(
        db,
        user,
        display_name=payload.display_name,
        bio=payload.bio,
        service_ids=payload.service_ids,
        location_lat=payload.location_lat,
        location_lon=payload.location_lon,
        service_radius_km=payload.service_radius_km,
        **extra,
    )
    return {"message": "Provider profile updated successfully.", "provider_id": provider.id}


@router.get("/bookings")
def list_bookings(user: User = Depends(require_provider), db: Session = Depends(get_db)):
    provider = provider_for_user(db, user)
    items = []
    for b in provider_bookings(db, provider):
        item = BookingListItem.from_orm(b)
        item.service_name = b.service.name if b.service else None
        item.customer_email = b.customer.email if b.customer else None
        items.append(item)
    return {"message": f"{len(items)} bookings retrieved.", "bookings": items}


@router.get("/earnings")
def get_earnings(user: User = Depends(require_provider), db: Session = Depends(get_db)):
    analytics = EarningsOut(**providers.earnings(db, user))
    return {"message": "Provider analytics retrieved successfully.", "analytics": analytics}


@router.post("/wallet/withdraw-request", response_model=WalletRequestCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def withdraw_request(
    request: Request,
    payload: WithdrawalRequestIn,
    user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    wallet_request = submit_withdrawal(db, user, payload.amount, payload.transaction_reference)
    return WalletRequestCreated(
        message="Withdrawal request submitted for admin approval.",
        request_id=wallet_request.id,
    )
