from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy.orm import Session

from ..errors import NotFound
from ..models.user import OwnerAccount, Profile, Role


@dataclass(frozen=True)
class CustomerActor:
    id: str
    full_name: str | None
    phone: str | None
    record: Any = None

    role = Role.CUSTOMER


@dataclass(frozen=True)
class DriverActor:
    id: str
    full_name: str | None
    phone: str | None
    record: Any = None

    role = Role.DRIVER


@dataclass(frozen=True)
class OwnerActor:
    id: str
    full_name: str | None
    phone: str | None
    record: Any = None
    company_name: str | None = None

    role = Role.OWNER


Actor = Union[CustomerActor, DriverActor, OwnerActor]


def actor_from_profile(p: Profile) -> Actor:
    if p.role == Role.CUSTOMER:
        return CustomerActor(id=p.id, full_name=p.display_name, phone=p.phone, record=p)
    if p.role == Role.DRIVER:
        return DriverActor(id=p.id, full_name=p.display_name, phone=p.phone, record=p)
    if p.role == Role.OWNER:
        return OwnerActor(
            id=p.id, full_name=p.display_name, phone=p.phone, record=p,
            company_name=p.company_name,
        )
    raise ValueError(f"Неизвестная роль: {p.role}")


def resolve_actor(db: Session, user_id: str) -> Actor:
    """
    Профиль из profiles; если его нет — ищем в owners и собираем OwnerActor.
    NotFound: пользователь авторизован, но профиля ещё нет (сразу после регистрации).
    """
    p = db.get(Profile, user_id)
    if p:
        return actor_from_profile(p)

    o = db.get(OwnerAccount, user_id)
    if o:
        return OwnerActor(
            id=o.id, full_name=o.owner_name, phone=o.phone, record=o,
            company_name=o.company_name,
        )

    raise NotFound("Профиль не найден")


def actor_to_dict(actor: Actor) -> dict:
    out = {
        "id": actor.id,
        "role": actor.role.value,
        "full_name": actor.full_name,
        "phone": actor.phone,
    }
    if isinstance(actor, OwnerActor):
        out["company_name"] = actor.company_name
        rec = actor.record
        if isinstance(rec, OwnerAccount):
            out["total_trucks"] = rec.total_trucks or 0
        elif isinstance(rec, Profile):
            out["total_trucks"] = rec.truck_count or 0
    elif isinstance(actor, DriverActor) and isinstance(actor.record, Profile):
        out["vehicle_number"] = actor.record.vehicle_number
    return out
