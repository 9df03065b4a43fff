import math

from sqlalchemy.orm import Session, selectinload

from serviceconnect.core.errors import ValidationError
from serviceconnect.models import Provider, Service
from serviceconnect.utils.cache import get_cached, set_cached

EARTH_RADIUS_KM = 6371.0
TOP_RATED_LIMIT = 5
SERVICES_CACHE_KEY = "catalog:services"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def list_services(db: Session) -> list[dict]:
    cached = get_cached(SERVICES_CACHE_KEY)
    if cached is not None:
        return cached
    rows = db.query(Service).order_by(Service.name).all()
    items = [
        {"id": s.id, "name": s.name, "description": s.description, "icon_url": s.icon_url}
        for s in rows
    ]
    set_cached(SERVICES_CACHE_KEY, items, ttl_seconds=60)
    return items


def _provider_row(provider: Provider, service: Service | None, distance_km: float | None) -> dict:
    return {
        "id": provider.id,
        "display_name": provider.display_name,
        "is_verified": provider.is_verified,
        "average_rating": provider.average_rating,
        "review_count": provider.review_count,
        "location_lat": provider.location_lat,
        "location_lon": provider.location_lon,
        "service_radius_km": provider.service_radius_km,
        "service_id": service.id if service else None,
        "service_name": service.name if service else None,
        "distance_km": round(distance_km, 1) if distance_km is not None else None,
    }


def search_providers(
    db: Session,
    service_id: int | None = None,
    lat: float | None = None,
    lon: float | None = None,
    sort_by: str | None = None,
) -> list[dict]:
    """Verified providers for a service, nearest first when a location is given.

    ``sort_by="top_rated"`` ignores the radius and returns the best five by rating.
    """
    top_rated = sort_by == "top_rated"
    if service_id is None and not top_rated:
        raise ValidationError("Service ID or sort_by=top_rated is required.")

    # 0,0 is what clients send when they have no location.
    has_location = lat is not None and lon is not None and (lat != 0 or lon != 0)

    query = db.query(Provider).options(selectinload(Provider.services)).filter(Provider.is_verified.is_(True))
    if service_id is not None:
        query = query.filter(Provider.services.any(Service.id == service_id))
    query = query.order_by(Provider.average_rating.desc(), Provider.review_count.desc(), Provider.id)

    results = []
    for provider in query.all():
        if service_id is not None:
            service = next((s for s in provider.services if s.id == service_id), None)
        else:
            service = provider.services[0] if provider.services else None
        distance = None
        if has_location:
            distance = haversine_km(lat, lon, provider.location_lat or 0, provider.location_lon or 0)
        if has_location and not top_rated and distance > (provider.service_radius_km or 0):
            continue
        results.append(_provider_row(provider, service, distance))

    if top_rated:
        return results[:TOP_RATED_LIMIT]
    if has_location:
        results.sort(key=lambda row: row["distance_km"])
    return results
