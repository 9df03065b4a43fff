from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from serviceconnect.core.database import get_db
from serviceconnect.middlewares.rate_limit import limiter
from serviceconnect.schemas.catalog import ProviderSearchOut, ServiceOut
from serviceconnect.schemas.contact import ContactIn
from serviceconnect.services import catalog, notifications
from serviceconnect.services.contact import submit_contact

router = APIRouter()


@router.get("/services", response_model=list[ServiceOut])
def list_services(db: Session = Depends(get_db)):
    return catalog.list_services(db)


@router.get("/providers", response_model=ProviderSearchOut)
def search_providers(
    service_id: Optional[int] = Query(None),
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
    sort_by: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    providers = catalog.search_providers(db, service_id=service_id, lat=lat, lon=lon, sort_by=sort_by)
    return ProviderSearchOut(message=f"{len(providers)} providers found.", providers=providers)


@router.post("/contact-us", status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def contact_us(request: Request, payload: ContactIn, db: Session = Depends(get_db)):
    message = submit_contact(db, payload.name, payload.email, payload.problem_description)
    notifications.notify_contact(message)
    return {"message": "Message submitted successfully. Admin will review shortly.", "id": message.id}
