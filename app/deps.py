# app/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from .db import get_db
from .config import settings
from .errors import NotFound
from .services.actors import Actor, resolve_actor
from .services.auth_client import AuthClient, get_auth_client
from .utils.security import decode_access_token


# ------------------ токен: заголовок или сессия ------------------

def get_access_token(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    sess = getattr(request, "session", None) or {}
    return sess.get("access_token")


async def get_current_user_id(
    token: Optional[str] = Depends(get_access_token),
    auth: AuthClient = Depends(get_auth_client),
) -> str:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Требуется вход")

    if settings.AUTH_VERIFY_REMOTE:
        principal = await auth.get_user(token)
        user_id = principal.id if principal else None
    else:
        claims = decode_access_token(token)
        user_id = claims.get("sub") if claims else None

    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Недействительный токен")
    return str(user_id)


# ------------------ актор ------------------

def get_current_actor(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Actor:
    try:
        return resolve_actor(db, user_id)
    except NotFound:
        # авторизован, но профиля ещё нет — отдельное состояние для фронта
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="profile_missing")
