from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr


class ContactIn(BaseModel):
    name: str
    email: EmailStr
    problem_description: str


class ContactMessageOut(BaseModel):
    id: int
    sender_name: str
    sender_email: str
    message: str
    created_at: Optional[datetime] = None

    class Config:
        orm_mode = True
