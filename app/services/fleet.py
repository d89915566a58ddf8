from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..errors import Forbidden, InvalidRole, NotFound, ValidationFailed
from ..models.truck import Truck, TruckEarning
from ..utils.logger import get_logger
from .actors import Actor, OwnerActor

logger = get_logger(__name__)


def _ensure_owner(actor: Actor) -> OwnerActor:
    if not isinstance(actor, OwnerActor):
        raise InvalidRole("Парком управляет только владелец")
    return actor


def _text(payload: Dict[str, Any], key: str) -> str | None:
    # номер из JSON может прийти числом
    value = payload.get(key)
    if value is None:
        return None
    return str(value).strip() or None


def list_trucks(db: Session, actor: Actor) -> list[Truck]:
    owner = _ensure_owner(actor)
    return list(db.execute(
        select(Truck).where(Truck.owner_id == owner.id).order_by(Truck.id.asc())
    ).scalars().all())


def add_truck(db: Session, actor: Actor, payload: Dict[str, Any]) -> Truck:
    owner = _ensure_owner(actor)

    number = (_text(payload, "truck_number") or "").upper()
    if not number:
        raise ValidationFailed("Укажите номер грузовика")

    capacity = payload.get("capacity")
    try:
        capacity = Decimal(str(capacity)) if capacity not in (None, "") else None
    except InvalidOperation:
        raise ValidationFailed("Грузоподъёмность должна быть числом")

    t = Truck(
        owner_id=owner.id,
        truck_number=number,
        model=_text(payload, "model"),
        capacity=capacity,
        status="available",
        driver_id=_text(payload, "driver_id"),
    )
    db.add(t)
    db.commit()
    db.refresh(t)
    logger.info(f"truck #{t.id} {number} added by owner={owner.id}")
    return t


def delete_truck(db: Session, actor: Actor, truck_id: int) -> Truck:
    owner = _ensure_owner(actor)
    t = db.get(Truck, truck_id)
    if not t:
        raise NotFound("Грузовик не найден")
    if t.owner_id != owner.id:
        raise Forbidden("Удалять можно только свои грузовики")
    db.delete(t)
    db.commit()
    logger.info(f"truck #{truck_id} deleted by owner={owner.id}")
    return t


def fleet_earnings(db: Session, actor: Actor) -> dict:
    """Выручка по грузовикам владельца: {"total": ..., "by_truck": {truck_id: сумма}}."""
    owner = _ensure_owner(actor)
    rows = db.execute(
        select(TruckEarning.truck_id, func.coalesce(func.sum(TruckEarning.amount), 0))
        .join(Truck, Truck.id == TruckEarning.truck_id)
        .where(Truck.owner_id == owner.id)
        .group_by(TruckEarning.truck_id)
    ).all()
    by_truck = {truck_id: round(float(total), 2) for truck_id, total in rows}
    return {"total": round(sum(by_truck.values()), 2), "by_truck": by_truck}
