from fastapi import Depends, Header
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.security import decode_access_token
from app.core.errors import auth_required, auth_invalid_credentials
from app.models.user import AdminUser


def get_token_header(authorization: str | None = Header(default=None)) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise auth_required()
    return authorization.split(" ", 1)[1]


def get_current_user(db: Session = Depends(get_db), token: str = Depends(get_token_header)) -> AdminUser:
    try:
        payload = decode_access_token(token)
        uid = int(payload.get("sub"))
    except Exception:
        raise auth_invalid_credentials()
    user = db.query(AdminUser).filter(AdminUser.id == uid, AdminUser.is_active == True).first()  # noqa: E712
    if not user or payload.get("ver", 0) != user.token_version:
        raise auth_invalid_credentials()
    return user
