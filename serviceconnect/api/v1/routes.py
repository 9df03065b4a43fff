from fastapi import APIRouter
from serviceconnect.api.v1.endpoints import admin, auth, bookings, customer, payments, provider, public, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(public.router, tags=["catalog"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(payments.router, tags=["payments"])
router.include_router(customer.router, prefix="/customer", tags=["customer"])
router.include_router(provider.router, prefix="/provider", tags=["provider"])
router.include_router(users.router, tags=["user"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
