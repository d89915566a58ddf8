# app/routers/locations.py
from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..deps import get_current_actor
from ..errors import InvalidRole, NotFound, ValidationFailed
from ..realtime import hub, DRIVER_LOCATIONS, UPDATE
from ..services import locations as svc
from ..services.actors import Actor, DriverActor

router = APIRouter(tags=["locations"])


def _parse_ts(raw) -> dt.datetime | None:
    if raw in (None, ""):
        return None
    try:
        return dt.datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationFailed("Неверный формат времени")


# Водитель присылает свою точку (раз в 30 секунд)
@router.post("/api/locations")
def api_report_location(
    payload: dict,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    if not isinstance(actor, DriverActor):
        raise InvalidRole("Координаты отправляют только водители")

    loc = svc.report_location(
        db, actor.id,
        payload.get("latitude"), payload.get("longitude"),
        _parse_ts(payload.get("timestamp")),
    )
    background_tasks.add_task(hub.publish, DRIVER_LOCATIONS, UPDATE, loc.driver_id, driver_id=loc.driver_id)
    return {"ok": True, "location": loc.to_dict()}


@router.get("/api/locations")
def api_recent_locations(
    limit: int = Query(settings.LOCATIONS_LIST_LIMIT, ge=1, le=settings.LOCATIONS_LIST_LIMIT),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return {"ok": True, "items": svc.fleet_map(db, limit=limit)}


@router.get("/api/locations/{driver_id}")
def api_driver_location(
    driver_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    loc = svc.latest(db, driver_id)
    if not loc:
        raise NotFound("Водитель ещё не присылал координаты")
    return {"ok": True, "location": {**loc.to_dict(), "stale": svc.is_stale(loc)}}
