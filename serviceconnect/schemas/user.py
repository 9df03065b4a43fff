from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, validator

from serviceconnect.models.user import UserRole


class UserOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: UserRole
    is_active: bool
    is_verified: bool

    class Config:
        orm_mode = True


class CustomerDetails(BaseModel):
    phone_number: Optional[str] = None
    address_line_1: Optional[str] = None
    city: Optional[str] = None
    location_lat: Optional[float] = None
    location_lon: Optional[float] = None


class UserProfileOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: UserRole
    profile_picture_url: Optional[str] = None
    created_at: Optional[datetime] = None
    profile: Optional[CustomerDetails] = None


class UserProfileUpdate(CustomerDetails):
    email: EmailStr
    full_name: Optional[str] = None

    @validator("location_lat")
    def _latitude_range(cls, value):
        if value is not None and not -90 <= value <= 90:
            raise ValueError("Latitude must be between -90 and 90.")
        return value

    @validator("location_lon")
    def _longitude_range(cls, value):
        if value is not None and not -180 <= value <= 180:
            raise ValueError("Longitude must be between -180 and 180.")
        return value


class ProfilePhotoOut(BaseModel):
    message: str
    profile_picture_url: str
