# app/routers/fleet.py
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_current_actor
from ..realtime import hub, TRUCKS, INSERT, DELETE
from ..services import fleet as svc
from ..services.actors import Actor

router = APIRouter(tags=["fleet"])


@router.get("/api/fleet/trucks")
def api_list_trucks(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return {"ok": True, "items": [t.to_dict() for t in svc.list_trucks(db, actor)]}


@router.post("/api/fleet/trucks")
def api_add_truck(
    payload: dict,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    t = svc.add_truck(db, actor, payload)
    background_tasks.add_task(hub.publish, TRUCKS, INSERT, t.id, owner_id=t.owner_id)
    return {"ok": True, "truck": t.to_dict()}


@router.delete("/api/fleet/trucks/{truck_id}")
def api_delete_truck(
    truck_id: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    t = svc.delete_truck(db, actor, truck_id)
    background_tasks.add_task(hub.publish, TRUCKS, DELETE, truck_id, owner_id=t.owner_id)
    return {"ok": True, "id": truck_id}


@router.get("/api/fleet/earnings")
def api_fleet_earnings(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return {"ok": True, **svc.fleet_earnings(db, actor)}
