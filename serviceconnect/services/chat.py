import logging

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from serviceconnect.core.errors import AuthorizationError, NotFound, ValidationError
from serviceconnect.models import Booking, Message, User
from serviceconnect.services.booking import chat_enabled, counterparty_user_id, get_party_booking

logger = logging.getLogger(__name__)


def chat_booking(db: Session, booking_id: int, user: User) -> Booking:
    booking = get_party_booking(db, booking_id, user)
    if not chat_enabled(booking.status):
        raise AuthorizationError("Chat is available once the booking is accepted.")
    return booking


def list_messages(db: Session, booking_id: int, user: User) -> list[tuple[Message, str]]:
    chat_booking(db, booking_id, user)
    return (
        db.query(Message, User.email)
        .join(User, Message.sender_id == User.id)
        .filter(Message.booking_id == booking_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )


def send_message(db: Session, booking_id: int, sender: User, content: str, file_url: str | None = None) -> Message:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required.")
    booking = chat_booking(db, booking_id, sender)
    recipient_id = counterparty_user_id(booking, sender)
    if not recipient_id:
        raise NotFound("Recipient user ID could not be determined.")

    message = Message(
        booking_id=booking.id,
        sender_id=sender.id,
        recipient_id=recipient_id,
        content=content,
        file_url=file_url,
        is_read=False,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.debug("Message %s booking_id=%s sender_id=%s", message.id, booking.id, sender.id)
    return message


def unread_count(db: Session, user: User) -> int:
    return (
        db.query(func.count(Message.id))
        .filter(Message.recipient_id == user.id, Message.is_read.is_(False))
        .scalar()
        or 0
    )


def mark_read(db: Session, booking_id: int, user: User) -> int:
    """Mark the user's incoming messages on one booking as read."""
    result = db.execute(
        update(Message)
        .where(Message.booking_id == booking_id, Message.recipient_id == user.id, Message.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount or 0
