import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.config import settings
from app.core.response import ok, no_content
from app.core.errors import auth_invalid_credentials
from app.core.security import create_access_token, verify_password
from app.schemas.auth import LoginIn, TokenOut
from app.api.deps import get_current_user
from app.models.user import AdminUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login")
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    u = (
        db.query(AdminUser)
        .filter(func.lower(AdminUser.email) == payload.email.strip().lower(), AdminUser.is_active == True)  # noqa: E712
        .first()
    )
    if not u or not verify_password(payload.password, u.password_hash):
        logger.info("Failed login for %s", payload.email)
        raise auth_invalid_credentials()
    u.last_login_at = datetime.now(timezone.utc)
    db.commit()
    token = create_access_token(str(u.id), u.token_version)
    return ok(request, TokenOut(access_token=token, expires_in=settings.ACCESS_TOKEN_EXPIRES_SECONDS).model_dump())


@router.get("/me")
def me(request: Request, user: AdminUser = Depends(get_current_user)):
    return ok(
        request,
        {
            "id": user.id,
            "email": user.email,
            "is_active": user.is_active,
            "last_login_at": user.last_login_at.isoformat() if user.last_login_at else None,
        },
    )


@router.post("/logout")
def logout(db: Session = Depends(get_db), user: AdminUser = Depends(get_current_user)):
    user.token_version = (user.token_version or 0) + 1
    db.commit()
    logger.info("Admin %s signed out", user.email)
    return no_content()
