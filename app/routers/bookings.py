# app/routers/bookings.py
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..deps import get_current_actor
from ..models.booking import Booking
from ..realtime import hub, BOOKINGS, INSERT, UPDATE
from ..services import bookings as svc
from ..services import dispatch
from ..services.actors import Actor
from ..services.geocoding import route_pins

router = APIRouter(tags=["bookings"])


def _publish(background_tasks: BackgroundTasks, event: str, b: Booking):
    # подписчики перезапросят список, row — только подсказка для ролевого фильтра
    background_tasks.add_task(
        hub.publish, BOOKINGS, event, b.id,
        customer_id=b.customer_id, driver_id=b.driver_id, status=b.status.value,
    )


@router.post("/api/bookings")
def api_create_booking(
    payload: dict,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    b = svc.create_booking(
        db, actor,
        payload.get("from_city"),
        payload.get("to_city"),
        payload.get("load") or payload.get("load_description"),
    )
    _publish(background_tasks, INSERT, b)
    return {"ok": True, "booking": b.to_dict()}


@router.get("/api/bookings")
def api_list_bookings(
    search: str | None = Query(None),
    status: str | None = Query(None),
    limit: int = Query(50, ge=1, le=settings.BOOKINGS_PAGE_LIMIT),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    rows = svc.list_visible(db, actor, search=search, status=svc.parse_status(status), limit=limit)
    return {"ok": True, "items": [b.to_dict() for b in rows]}


# Лента для водителя: только свободные заявки
@router.get("/api/bookings/offers")
def api_offers(
    limit: int = Query(50, ge=1, le=settings.BOOKINGS_PAGE_LIMIT),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    rows = dispatch.offerable(db, actor, limit=limit)
    return {"ok": True, "items": [b.to_dict() for b in rows]}


# Сводка по статусам + популярные города (по видимым актору заявкам)
@router.get("/api/bookings/summary")
def api_summary(
    top: int = Query(5, ge=1, le=50),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return {"ok": True, "summary": svc.booking_summary(db, actor), "top_cities": svc.top_cities(db, actor, top)}


@router.get("/api/bookings/{booking_id}")
def api_booking_details(
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    b = svc.get_visible(db, actor, booking_id)
    return {"ok": True, "booking": svc.booking_details(db, actor, b)}


# Пины маршрута для карты; нет координат — нет пина, не ошибка
@router.get("/api/bookings/{booking_id}/route")
async def api_booking_route(
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    b = svc.get_visible(db, actor, booking_id)
    pins = await route_pins(b.from_city, b.to_city)
    return {"ok": True, "booking_id": b.id, "pins": pins}


@router.post("/api/bookings/{booking_id}/accept")
def api_accept_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    b = dispatch.claim(db, actor, booking_id)
    _publish(background_tasks, UPDATE, b)
    return {"ok": True, "booking": b.to_dict()}


@router.post("/api/bookings/{booking_id}/complete")
def api_complete_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    b = dispatch.finish(db, actor, booking_id)
    _publish(background_tasks, UPDATE, b)
    return {"ok": True, "booking": b.to_dict()}
