from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, validator


class ServiceOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None


class ProviderListItem(BaseModel):
    id: int
    display_name: str
    is_verified: bool
    average_rating: Decimal
    review_count: int
    location_lat: Optional[float] = None
    location_lon: Optional[float] = None
    service_radius_km: Optional[float] = None
    service_id: Optional[int] = None
    service_name: Optional[str] = None
    distance_km: Optional[float] = None


class ProviderSearchOut(BaseModel):
    message: str
    providers: list[ProviderListItem]


class ProviderProfileIn(BaseModel):
    display_name: str
    bio: str
    service_ids: list[int]
    location_lat: Optional[float] = None
    location_lon: Optional[float] = None
    service_radius_km: Optional[float] = None
    payout_upi_id: Optional[str] = None

    @validator("service_radius_km")
    def _radius_positive(cls, value):
        if value is not None and value <= 0:
            raise ValueError("Service radius must be positive.")
        return value


class ProviderProfileOut(BaseModel):
    id: int
    user_id: int
    display_name: str
    bio: Optional[str] = None
    location_lat: Optional[float] = None
    location_lon: Optional[float] = None
    service_radius_km: Optional[float] = None
    payout_upi_id: Optional[str] = None
    is_verified: bool
    average_rating: Decimal
    review_count: int
    service_ids: list[int] = []


class EarningsOut(BaseModel):
    wallet_balance: Decimal
    average_rating: Decimal
    review_count: int
    completed_jobs: int
    total_earnings: Decimal
