from __future__ import annotations

from collections import Counter

from sqlalchemy import select, update, or_, func
from sqlalchemy.orm import Session

from ..errors import Conflict, Forbidden, InvalidRole, InvalidTransition, NotFound, ValidationFailed
from ..models.booking import Booking, BookingStatus
from ..models.user import Profile
from ..utils.logger import get_logger
from ..utils.timeutil import utcnow, iso
from .actors import Actor, CustomerActor, DriverActor, OwnerActor
from . import locations

logger = get_logger(__name__)

DEFAULT_LIMIT = 200


def _booking_by_id(db: Session, booking_id: int, fresh: bool = False) -> Booking | None:
    # fresh=True — перечитать строку из БД поверх identity map
    return db.get(Booking, booking_id, populate_existing=fresh)


def is_consistent(b: Booking) -> bool:
    """driver_id задан тогда и только тогда, когда статус Accepted/Completed."""
    assigned = b.status in (BookingStatus.ACCEPTED, BookingStatus.COMPLETED)
    return (b.driver_id is not None) == assigned


def parse_status(raw: str | None) -> BookingStatus | None:
    if raw in (None, "", "All", "all"):
        return None
    for s in BookingStatus:
        if s.value.lower() == str(raw).strip().lower():
            return s
    raise ValidationFailed("Неизвестный статус")


def _text(value) -> str:
    # из JSON может прийти число: {"from_city": 411001}
    return str(value).strip() if value is not None else ""


# ---------- создание ----------

def create_booking(db: Session, actor: Actor, from_city: str, to_city: str, load: str) -> Booking:
    if not isinstance(actor, CustomerActor):
        raise InvalidRole("Создавать заявки могут только клиенты")

    from_city = _text(from_city)
    to_city = _text(to_city)
    load = _text(load)
    if not from_city or not to_city or not load:
        raise ValidationFailed("Укажите города отправления, назначения и груз")

    b = Booking(
        customer_id=actor.id,
        driver_id=None,
        from_city=from_city,
        to_city=to_city,
        load_description=load,
        status=BookingStatus.PENDING,
        created_at=utcnow(),
    )
    db.add(b)
    db.commit()
    db.refresh(b)
    logger.info(f"booking #{b.id} created by customer={actor.id} {from_city} -> {to_city}")
    return b


# ---------- видимость ----------

def _visible_to(actor: Actor, b: Booking) -> bool:
    if isinstance(actor, CustomerActor):
        return b.customer_id == actor.id
    if isinstance(actor, DriverActor):
        return b.status == BookingStatus.PENDING or b.driver_id == actor.id
    if isinstance(actor, OwnerActor):
        return False
    raise InvalidRole("Неизвестная роль")


def _scope(actor: Actor):
    """Условие видимости заявок для роли; None — роли заявки не видны."""
    if isinstance(actor, CustomerActor):
        return Booking.customer_id == actor.id
    if isinstance(actor, DriverActor):
        return or_(Booking.status == BookingStatus.PENDING, Booking.driver_id == actor.id)
    if isinstance(actor, OwnerActor):
        return None
    raise InvalidRole("Неизвестная роль")


def list_visible(
    db: Session,
    actor: Actor,
    search: str | None = None,
    status: BookingStatus | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[Booking]:
    """
    Клиент — свои заявки (любой статус).
    Водитель — общий пул Pending + свои взятые/закрытые.
    Владелец — ничего (работает с грузовиками, не с заявками).
    Сортировка: новые сверху.
    """
    scope = _scope(actor)
    if scope is None:
        return []
    q = select(Booking).where(scope)

    if status is not None:
        q = q.where(Booking.status == status)

    needle = (search or "").strip()
    if needle:
        pattern = f"%{needle}%"
        q = q.where(or_(
            Booking.from_city.ilike(pattern),
            Booking.to_city.ilike(pattern),
            Booking.load_description.ilike(pattern),
        ))

    q = q.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit)
    return list(db.execute(q).scalars().all())


def get_visible(db: Session, actor: Actor, booking_id: int) -> Booking:
    b = _booking_by_id(db, booking_id)
    # чужую заявку не отличаем от несуществующей
    if not b or not _visible_to(actor, b):
        raise NotFound("Заявка не найдена")
    return b


# ---------- переходы статусов ----------

def accept_booking(db: Session, booking_id: int, driver_id: str) -> Booking:
    """
    Pending -> Accepted одним условным UPDATE (compare-and-swap по статусу).
    Из двух гонящихся водителей строку обновит ровно один, второй получит Conflict.
    """
    res = db.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == BookingStatus.PENDING)
        .values(driver_id=driver_id, status=BookingStatus.ACCEPTED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        b = _booking_by_id(db, booking_id, fresh=True)
        if not b:
            raise NotFound("Заявка не найдена")
        logger.warning(f"booking #{booking_id}: accept by {driver_id} lost, status={b.status.value} driver={b.driver_id}")
        raise Conflict("Заявку уже взял другой водитель")

    db.commit()
    b = _booking_by_id(db, booking_id, fresh=True)
    logger.info(f"booking #{booking_id} accepted by driver={driver_id}")
    return b


def complete_booking(db: Session, booking_id: int, driver_id: str) -> Booking:
    """
    Accepted -> Completed, только назначенным водителем.
    """
    res = db.execute(
        update(Booking)
        .where(
            Booking.id == booking_id,
            Booking.status == BookingStatus.ACCEPTED,
            Booking.driver_id == driver_id,
        )
        .values(status=BookingStatus.COMPLETED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        b = _booking_by_id(db, booking_id, fresh=True)
        if not b:
            raise NotFound("Заявка не найдена")
        if b.driver_id is not None and b.driver_id != driver_id:
            raise Forbidden("Завершить заявку может только назначенный водитель")
        raise InvalidTransition(f"Недопустимый переход из {b.status.value} в {BookingStatus.COMPLETED.value}")

    db.commit()
    b = _booking_by_id(db, booking_id, fresh=True)
    logger.info(f"booking #{booking_id} completed by driver={driver_id}")
    return b


# ---------- сводки для дашборда ----------

def booking_summary(db: Session, actor: Actor) -> dict:
    """Счётчики по статусам среди всех видимых актору заявок (без лимита страницы)."""
    counts: Counter = Counter()
    scope = _scope(actor)
    if scope is not None:
        rows = db.execute(
            select(Booking.status, func.count(Booking.id)).where(scope).group_by(Booking.status)
        ).all()
        counts.update({status: n for status, n in rows})
    return {
        "total": sum(counts.values()),
        "pending": counts.get(BookingStatus.PENDING, 0),
        "accepted": counts.get(BookingStatus.ACCEPTED, 0),
        "completed": counts.get(BookingStatus.COMPLETED, 0),
    }


def top_cities(db: Session, actor: Actor, limit: int = 5) -> list[dict]:
    # город считается и как точка отправления, и как точка назначения
    counts: Counter = Counter()
    scope = _scope(actor)
    if scope is None:
        return []
    for column in (Booking.from_city, Booking.to_city):
        rows = db.execute(
            select(column, func.count(Booking.id)).where(scope).group_by(column)
        ).all()
        for city, n in rows:
            counts[city] += n
    return [{"city": city, "count": n} for city, n in counts.most_common(limit)]


def booking_details(db: Session, actor: Actor, b: Booking) -> dict:
    """
    Заявка + контакты второй стороны (пока заявка в работе) + последняя точка водителя.
    """
    out = b.to_dict()
    if b.status != BookingStatus.ACCEPTED:
        return out

    if isinstance(actor, CustomerActor):
        drv = db.get(Profile, b.driver_id) if b.driver_id else None
        if drv:
            out["driver"] = {
                "id": drv.id,
                "full_name": drv.display_name,
                "contact": drv.phone,
                "license_number": drv.driving_license,
                "vehicle_number": drv.vehicle_number,
                "vehicle_capacity": float(drv.vehicle_capacity) if drv.vehicle_capacity is not None else None,
            }
    elif isinstance(actor, DriverActor):
        cust = db.get(Profile, b.customer_id)
        if cust:
            out["customer"] = {
                "id": cust.id,
                "full_name": cust.display_name,
                "contact": cust.phone,
            }

    loc = locations.latest(db, b.driver_id) if b.driver_id else None
    out["driver_location"] = (
        {
            "latitude": loc.latitude,
            "longitude": loc.longitude,
            "updated_at": iso(loc.updated_at),
            "stale": locations.is_stale(loc),
        } if loc else None
    )
    return out
