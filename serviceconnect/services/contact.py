import logging

from sqlalchemy.orm import Session

from serviceconnect.core.database import atomic
from serviceconnect.core.errors import ValidationError
from serviceconnect.models import ContactMessage

logger = logging.getLogger(__name__)


def submit_contact(db: Session, name: str, email: str, description: str) -> ContactMessage:
    name = (name or "").strip()
    email = (email or "").strip().lower()
    description = (description or "").strip()
    if not name or not email or not description:
        raise ValidationError("Name, email, and a description are required.")

    with atomic(db):
        message = ContactMessage(sender_name=name[:255], sender_email=email, message=description)
        db.add(message)
        db.flush()
    logger.info("Contact message %s received", message.id)
    return message


def list_contact_messages(db: Session) -> list[ContactMessage]:
    return db.query(ContactMessage).order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc()).all()
