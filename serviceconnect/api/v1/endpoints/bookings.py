from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from serviceconnect.core.database import get_db
from serviceconnect.dependencies import get_current_user, require_customer, require_provider
from serviceconnect.models import User
from serviceconnect.schemas.booking import (
    BookingChangeOut,
    BookingCreate,
    BookingOut,
    BookingStatusUpdate,
    ConfirmPriceIn,
)
from serviceconnect.schemas.chat import MessageIn, MessageOut, MessageSent
from serviceconnect.services import booking as booking_service
from serviceconnect.services import chat
from serviceconnect.services import notifications
from serviceconnect.utils.uploads import IMAGE_OR_PDF_TYPES, discard_upload, save_upload

router = APIRouter()


@router.post("", response_model=BookingChangeOut, status_code=status.HTTP_201_CREATED)
def create_booking(payload: BookingCreate, user: User = Depends(require_customer), db: Session = Depends(get_db)):
    booking = booking_service.create_booking(
        db,
        user,
        provider_id=payload.provider_id,
        service_id=payload.service_id,
        scheduled_at=payload.scheduled_at,
        address=payload.address,
        service_description=payload.service_description,
        customer_notes=payload.customer_notes,
    )
    notifications.notify_new_booking(db, booking)
    return BookingChangeOut(
        message="Booking request sent successfully. Awaiting provider review.",
        booking=BookingOut.from_orm(booking),
    )


@router.put("/{booking_id}", response_model=BookingChangeOut)
def provider_update(
    booking_id: int,
    payload: BookingStatusUpdate,
    user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    change = booking_service.provider_update(db, booking_id, user, payload.status, payload.amount)
    notifications.notify_provider_update(db, change.booking)
    return BookingChangeOut(
        message=f"Booking status updated to {change.current.value}.",
        booking=BookingOut.from_orm(change.booking),
    )


@router.put("/{booking_id}/confirm-price", response_model=BookingChangeOut)
def confirm_price(
    booking_id: int,
    payload: ConfirmPriceIn,
    user: User = Depends(require_customer),
    db: Session = Depends(get_db),
):
    change = booking_service.confirm_price(db, booking_id, user, payload.accepted)
    notifications.notify_price_decision(db, change.booking)
    verdict = "accepted" if payload.accepted else "rejected"
    return BookingChangeOut(
        message=f"Price {verdict}. Booking status is now {change.current.value}.",
        booking=BookingOut.from_orm(change.booking),
    )


@router.get("/{booking_id}/messages")
def list_messages(booking_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = chat.list_messages(db, booking_id, user)
    items = [
        MessageOut(
            id=m.id,
            sender_id=m.sender_id,
            sender_email=email,
            content=m.content,
            file_url=m.file_url,
            is_read=m.is_read,
            created_at=m.created_at,
        )
        for m, email in rows
    ]
    return {"message": f"{len(items)} messages retrieved.", "messages": items}


@router.post("/{booking_id}/messages", response_model=MessageSent, status_code=status.HTTP_201_CREATED)
def send_message(
    booking_id: int,
    payload: MessageIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    message = chat.send_message(db, booking_id, user, payload.content)
    return MessageSent(message="Message sent successfully.", message_id=message.id, created_at=message.created_at)


@router.post("/{booking_id}/messages/upload", response_model=MessageSent, status_code=status.HTTP_201_CREATED)
def send_attachment(
    booking_id: int,
    file: UploadFile | None = File(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Party and chat-state checks run before anything touches the disk.
    chat.chat_booking(db, booking_id, user)
    file_url = save_upload(file, user.id, IMAGE_OR_PDF_TYPES, "File attachment is required.")
    try:
        message = chat.send_message(db, booking_id, user, f"File uploaded: {file.filename}", file_url=file_url)
    except Exception:
        discard_upload(file_url)
        raise
    return MessageSent(
        message="File sent successfully.",
        message_id=message.id,
        created_at=message.created_at,
        file_url=file_url,
    )
