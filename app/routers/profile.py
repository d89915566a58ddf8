from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_current_user_id
from ..services.actors import resolve_actor
from ..services.profiles import get_profile, update_profile, profile_to_dict

router = APIRouter(tags=["profile"])


@router.get("/api/profile")
def api_get_profile(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    p = get_profile(db, user_id)
    return {"ok": True, "profile": profile_to_dict(p)}


@router.patch("/api/profile")
def api_update_profile(
    payload: dict,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Правка своих полей профиля. id и роль неизменны.
    """
    actor = resolve_actor(db, user_id)
    p = update_profile(db, actor, user_id, payload)
    return {"ok": True, "profile": profile_to_dict(p)}
