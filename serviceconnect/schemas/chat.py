from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MessageIn(BaseModel):
    content: str


class MessageOut(BaseModel):
    id: int
    sender_id: int
    sender_email: Optional[str] = None
    content: str
    file_url: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None


class MessageSent(BaseModel):
    message: str
    message_id: int
    created_at: Optional[datetime] = None
    file_url: Optional[str] = None


class UnreadCount(BaseModel):
    unread_count: int


class MarkReadIn(BaseModel):
    booking_id: int
