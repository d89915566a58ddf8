# app/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_current_user_id
from ..errors import NotFound, ValidationFailed
from ..services.actors import resolve_actor, actor_to_dict
from ..services.auth_client import AuthClient, get_auth_client
from ..services.profiles import parse_role, validate_signup, create_profile
from ..utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["auth"])


@router.post("/api/auth/signup")
async def api_signup(
    payload: dict,
    db: Session = Depends(get_db),
    auth: AuthClient = Depends(get_auth_client),
):
    """
    Регистрация: проверяем анкету, создаём пользователя у провайдера, пишем профиль.
    Если провайдер требует подтверждения e-mail — сессии нет, фронт показывает «проверьте почту».
    """
    role = parse_role(payload.get("role"))
    validate_signup(role, payload)
    email = str(payload.get("email") or "").strip().lower()

    result = await auth.sign_up(email, payload["password"])
    if not result.principal:
        return {"ok": True, "verify_email": True, "profile_created": False}

    create_profile(db, result.principal.id, email, role, payload)
    return {
        "ok": True,
        "verify_email": result.session is None,
        "profile_created": True,
        "user_id": result.principal.id,
    }


@router.post("/api/auth/login")
async def api_login(
    payload: dict,
    request: Request,
    auth: AuthClient = Depends(get_auth_client),
):
    email = str(payload.get("email") or "").strip().lower()
    password = str(payload.get("password") or "")
    if not email or not password:
        raise ValidationFailed("Укажите email и пароль")

    session = await auth.sign_in_with_password(email, password)
    request.session["access_token"] = session.access_token
    # важно: ответ без кэша
    resp = JSONResponse({
        "ok": True,
        "user_id": session.principal.id,
        "access_token": session.access_token,
    })
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/api/auth/logout")
def api_logout(request: Request):
    request.session.pop("access_token", None)
    return {"ok": True}


@router.get("/api/me")
def api_me(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    try:
        actor = resolve_actor(db, user_id)
    except NotFound:
        # сразу после регистрации профиля может ещё не быть — это не ошибка
        return {"ok": True, "state": "profile_missing", "user_id": user_id, "actor": None}
    return {"ok": True, "state": "ready", "user_id": user_id, "actor": actor_to_dict(actor)}
