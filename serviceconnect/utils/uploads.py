import os
import secrets
import time

from fastapi import UploadFile

from serviceconnect.core.config import get_settings
from serviceconnect.core.errors import ValidationError

IMAGE_TYPES = ("image/",)
IMAGE_OR_PDF_TYPES = ("image/", "application/pdf")
_CHUNK = 64 * 1024


def _allowed(content_type: str, allowed: tuple[str, ...]) -> bool:
    content_type = (content_type or "").lower()
    return any(content_type.startswith(prefix) if prefix.endswith("/") else content_type == prefix for prefix in allowed)


def save_upload(file: UploadFile | None, owner_id: int, allowed: tuple[str, ...], missing_message: str) -> str:
    """Write an uploaded file under UPLOAD_DIR and return its public URL."""
    settings = get_settings()
    if file is None or not file.filename:
        raise ValidationError(missing_message)
    if not _allowed(file.content_type, allowed):
        if allowed == IMAGE_TYPES:
            raise ValidationError("Only image files are allowed.")
        raise ValidationError("Only images and PDF files are allowed!")

    os.makedirs(settings.upload_dir, exist_ok=True)
    ext = os.path.splitext(file.filename)[1].lower()[:10]
    name = f"{owner_id}-{int(time.time() * 1000)}{secrets.token_hex(4)}{ext}"
    path = os.path.join(settings.upload_dir, name)

    written = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = file.file.read(_CHUNK)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.upload_max_bytes:
                    raise ValidationError(
                        f"File too large (max {settings.upload_max_bytes // (1024 * 1024)} MB)."
                    )
                out.write(chunk)
    except Exception:
        if os.path.exists(path):
            os.remove(path)
        raise

    return f"{settings.public_base_url.rstrip('/')}/uploads/{name}"


def discard_upload(url: str | None) -> None:
    """Delete a file written by save_upload, given its public URL."""
    if not url:
        return
    name = os.path.basename(url)
    path = os.path.join(get_settings().upload_dir, name)
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
