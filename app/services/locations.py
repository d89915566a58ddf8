from __future__ import annotations

import datetime as dt

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import StaleReport, ValidationFailed
from ..models.location import DriverLocation
from ..models.user import Profile
from ..utils.logger import get_logger
from ..utils.timeutil import utcnow, to_naive_utc, iso

logger = get_logger(__name__)

# точка «из будущего» заблокировала бы все следующие отчёты водителя
MAX_CLOCK_SKEW = dt.timedelta(minutes=5)


def _check_coords(lat, lon) -> tuple[float, float]:
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        raise ValidationFailed("Координаты должны быть числами")
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        raise ValidationFailed("Координаты вне допустимого диапазона")
    return lat, lon


def _upsert(db: Session, values: dict):
    """
    INSERT ... ON CONFLICT (driver_id) DO UPDATE ... WHERE stored.updated_at <= new.updated_at
    Старый отчёт не перезапишет более свежий даже при гонке двух запросов.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        _upsert_locked(db, values)
        return

    stmt = insert(DriverLocation).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[DriverLocation.driver_id],
        set_={
            "latitude": stmt.excluded.latitude,
            "longitude": stmt.excluded.longitude,
            "updated_at": stmt.excluded.updated_at,
        },
        where=DriverLocation.updated_at <= stmt.excluded.updated_at,
    )
    db.execute(stmt)


def _upsert_locked(db: Session, values: dict):
    # для СУБД без ON CONFLICT: блокируем строку водителя
    row = db.execute(
        select(DriverLocation).where(DriverLocation.driver_id == values["driver_id"]).with_for_update()
    ).scalar_one_or_none()
    if row is None:
        db.add(DriverLocation(**values))
    elif row.updated_at <= values["updated_at"]:
        row.latitude = values["latitude"]
        row.longitude = values["longitude"]
        row.updated_at = values["updated_at"]


def report_location(db: Session, driver_id: str, lat, lon, timestamp: dt.datetime | None = None) -> DriverLocation:
    """
    Upsert последней точки водителя. Побеждает более поздний timestamp;
    повтор с тем же timestamp просто перезаписывает значение.
    Отчёт старше сохранённого отклоняется (StaleReport).
    """
    if not driver_id:
        raise ValidationFailed("Не указан водитель")
    lat, lon = _check_coords(lat, lon)

    now = utcnow()
    ts = to_naive_utc(timestamp) if timestamp else now
    if ts - now > MAX_CLOCK_SKEW:
        raise ValidationFailed("Время отчёта в будущем")

    _upsert(db, {"driver_id": driver_id, "latitude": lat, "longitude": lon, "updated_at": ts})
    db.commit()

    row = latest(db, driver_id)
    if row.updated_at > ts:
        logger.warning(f"stale location from driver={driver_id}: {ts.isoformat()} < {row.updated_at.isoformat()}")
        raise StaleReport("Есть более свежая точка водителя")
    return row


def latest(db: Session, driver_id: str) -> DriverLocation | None:
    return db.execute(
        select(DriverLocation)
        .where(DriverLocation.driver_id == driver_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def list_recent(db: Session, limit: int | None = None) -> list[DriverLocation]:
    return list(db.execute(
        select(DriverLocation)
        .order_by(DriverLocation.updated_at.desc())
        .limit(limit or settings.LOCATIONS_LIST_LIMIT)
    ).scalars().all())


def fleet_map(db: Session, limit: int | None = None, now: dt.datetime | None = None) -> list[dict]:
    """Точки для общей карты: с именем и телефоном водителя."""
    rows = db.execute(
        select(DriverLocation, Profile)
        .outerjoin(Profile, Profile.id == DriverLocation.driver_id)
        .order_by(DriverLocation.updated_at.desc())
        .limit(limit or settings.LOCATIONS_LIST_LIMIT)
    ).all()
    items = []
    for loc, prof in rows:
        items.append({
            "driver_id": loc.driver_id,
            "latitude": loc.latitude,
            "longitude": loc.longitude,
            "updated_at": iso(loc.updated_at),
            "stale": is_stale(loc, now=now),
            "driver": {
                "full_name": prof.display_name if prof else None,
                "phone": prof.phone if prof else None,
            },
        })
    return items


def is_stale(loc: DriverLocation, now: dt.datetime | None = None, max_age: dt.timedelta | None = None) -> bool:
    # чисто презентационный признак, строки трекер не удаляет
    now = to_naive_utc(now) if now else utcnow()
    max_age = max_age or dt.timedelta(seconds=settings.LOCATION_STALE_AFTER_SEC)
    return now - loc.updated_at > max_age
