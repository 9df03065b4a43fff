from functools import lru_cache
import json
from typing import Optional

from pydantic import BaseSettings, PostgresDsn


def parse_cors_origins(value: str) -> list[str]:
    if not value:
        return []

    parsed: list[str]
    raw = value.strip()
    if raw.startswith("["):
        try:
            items = json.loads(raw)
            parsed = [str(item).strip() for item in items if str(item).strip()]
        except (TypeError, ValueError):
            parsed = []
    else:
        parsed = [origin.strip() for origin in raw.split(",") if origin.strip()]

    # Preserve order and remove duplicates.
    return list(dict.fromkeys(parsed))


def parse_admin_emails(value: str) -> set[str]:
    return {item.strip().lower() for item in (value or "").split(",") if item.strip()}


class Settings(BaseSettings):
    app_name: str = "Service Connect"
    environment: str = "development"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Security
    secret_key: str
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7
    password_bcrypt_rounds: int = 12
    otp_expire_minutes: int = 10

    # Database
    database_url: PostgresDsn
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 15
    db_pool_recycle: int = 1200
    db_pool_pre_ping: bool = True
    # Milliseconds a request waits on a row lock before Postgres gives up.
    db_lock_timeout_ms: int = 10000

    # Frontend URLs (used for email links)
    frontend_base_url: str = "http://localhost:3000"

    # Email (booking notifications, OTP)
    email_provider: str = "console"  # console|smtp|resend
    email_from: str = "Service Connect <no-reply@serviceconnect.local>"

    # Resend
    resend_api_key: Optional[str] = None

    # SMTP
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True

    # Uploads (deposit proofs, chat attachments)
    upload_dir: str = "uploads"
    upload_max_bytes: int = 5 * 1024 * 1024
    public_base_url: str = "http://localhost:8000"

    # CORS
    cors_origins: str = "http://localhost:3000"
    auto_create_tables: bool = False

    # Logins whose email is listed here are treated as admin regardless of the
    # stored role (comma-separated).
    admin_emails: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
