from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from serviceconnect.core.database import get_db
from serviceconnect.dependencies import get_current_user
from serviceconnect.models import User
from serviceconnect.schemas.chat import MarkReadIn, UnreadCount
from serviceconnect.schemas.user import ProfilePhotoOut, UserProfileOut, UserProfileUpdate
from serviceconnect.schemas.wallet import TransactionOut, WalletOut
from serviceconnect.services import chat, profiles
from serviceconnect.services.wallet import recent_transactions, wallet_summary
from serviceconnect.utils.uploads import IMAGE_TYPES, discard_upload, save_upload

router = APIRouter()


@router.get("/user/profile")
def get_profile(user: User = Depends(get_current_user)):
    return {
        "message": "Profile data retrieved successfully.",
        "user_profile": UserProfileOut(**profiles.profile_view(user)),
    }


@router.put("/user/profile")
def update_profile(payload: UserProfileUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profiles.update_profile(
        db,
        user,
        payload.email,
        full_name=payload.full_name,
        phone_number=payload.phone_number,
        address_line_1=payload.address_line_1,
        city=payload.city,
        location_lat=payload.location_lat,
        location_lon=payload.location_lon,
    )
    return {"message": "Profile updated successfully."}


@router.post("/user/profile-photo", response_model=ProfilePhotoOut)
def upload_profile_photo(
    profile_photo: UploadFile | None = File(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    url = save_upload(profile_photo, user.id, IMAGE_TYPES, "No file uploaded.")
    try:
        previous = profiles.set_profile_picture(db, user, url)
    except Exception:
        discard_upload(url)
        raise
    discard_upload(previous)
    return ProfilePhotoOut(message="Profile picture uploaded successfully.", profile_picture_url=url)


@router.get("/user/wallet", response_model=WalletOut)
def get_wallet(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return WalletOut(**wallet_summary(db, user.id))


@router.get("/user/wallet/transactions")
def get_transactions(
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = recent_transactions(db, user.id, limit=limit)
    return {"transactions": [TransactionOut.from_orm(t) for t in rows]}


@router.get("/user/unread-messages", response_model=UnreadCount)
def get_unread(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return UnreadCount(unread_count=chat.unread_count(db, user))


@router.put("/messages/read")
def mark_read(payload: MarkReadIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    updated = chat.mark_read(db, payload.booking_id, user)
    return {"message": "Messages marked as read.", "updated": updated}
