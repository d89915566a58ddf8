"""
Диспетчеризация: какие заявки предложить водителю и кто их забирает.
Своего хранилища нет — только фильтр и проверки поверх bookings.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from ..errors import InvalidRole
from ..models.booking import Booking, BookingStatus
from .actors import Actor, DriverActor
from . import bookings


def _ensure_driver(actor: Actor) -> DriverActor:
    if not isinstance(actor, DriverActor):
        raise InvalidRole("Действие доступно только водителям")
    return actor


def offerable(db: Session, actor: Actor, limit: int = bookings.DEFAULT_LIMIT) -> list[Booking]:
    driver = _ensure_driver(actor)
    return [
        b for b in bookings.list_visible(db, driver, status=BookingStatus.PENDING, limit=limit)
        if b.status == BookingStatus.PENDING
    ]


def claim(db: Session, actor: Actor, booking_id: int) -> Booking:
    # единственная операция с несколькими писателями: взаимоисключение — в accept_booking
    driver = _ensure_driver(actor)
    return bookings.accept_booking(db, booking_id, driver.id)


def finish(db: Session, actor: Actor, booking_id: int) -> Booking:
    driver = _ensure_driver(actor)
    return bookings.complete_booking(db, booking_id, driver.id)
