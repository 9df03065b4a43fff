import jwt
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from serviceconnect.core.database import get_db
from serviceconnect.core.security import decode_token
from serviceconnect.models import User, UserRole
from serviceconnect.services.accounts import effective_role


def _extract_token(x_auth_token: str | None, authorization: str | None) -> str | None:
    if x_auth_token and x_auth_token.strip():
        return x_auth_token.strip()
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return None


def get_current_user(
    db: Session = Depends(get_db),
    x_auth_token: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> User:
    token = _extract_token(x_auth_token, authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token, authorization denied.")
    try:
        payload = decode_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid.")
    if payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid.")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid.")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive.")
    # Role changes (including ADMIN_EMAILS edits) invalidate tokens issued before them.
    if payload.get("role") != effective_role(user).value:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token role is no longer valid.")
    return user


def _require_role(role: UserRole, detail: str):
    def dependency(user: User = Depends(get_current_user)) -> User:
        if effective_role(user) != role:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return user

    return dependency


require_admin = _require_role(UserRole.ADMIN, "Access denied. Admin role required.")
require_customer = _require_role(UserRole.CUSTOMER, "Access denied. Customer role required.")
require_provider = _require_role(UserRole.PROVIDER, "Access denied. Provider role required.")
