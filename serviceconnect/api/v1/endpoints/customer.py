from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

from serviceconnect.core.database import get_db
from serviceconnect.core.errors import ValidationError
from serviceconnect.dependencies import require_customer
from serviceconnect.middlewares.rate_limit import limiter
from serviceconnect.models import User
from serviceconnect.schemas.booking import BookingListItem
from serviceconnect.schemas.wallet import WalletRequestCreated
from serviceconnect.services.booking import customer_bookings
from serviceconnect.services.wallet import as_amount
from serviceconnect.services.wallet_requests import submit_deposit
from serviceconnect.utils.uploads import IMAGE_TYPES, discard_upload, save_upload

router = APIRouter()


@router.get("/bookings")
def list_bookings(user: User = Depends(require_customer), db: Session = Depends(get_db)):
    items = []
    for b in customer_bookings(db, user):
        item = BookingListItem.from_orm(b)
        item.service_name = b.service.name if b.service else None
        item.provider_name = b.provider.display_name if b.provider else None
        items.append(item)
    return {"message": f"{len(items)} bookings retrieved.", "bookings": items}


@router.post("/wallet/deposit-request", response_model=WalletRequestCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def deposit_request(
    request: Request,
    amount: str = Form(...),
    transaction_reference: str = Form(""),
    screenshot: UploadFile | None = File(default=None),
    user: User = Depends(require_customer),
    db: Session = Depends(get_db),
):
    value = as_amount(amount)
    if not transaction_reference.strip():
        raise ValidationError("UPI Transaction Reference is required.")

    screenshot_url = save_upload(screenshot, user.id, IMAGE_TYPES, "Screenshot proof is required.")
    try:
        wallet_request = submit_deposit(db, user, value, transaction_reference, screenshot_url)
    except Exception:
        discard_upload(screenshot_url)
        raise
    return WalletRequestCreated(
        message="Deposit request submitted for admin verification.",
        request_id=wallet_request.id,
    )
