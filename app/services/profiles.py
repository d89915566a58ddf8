from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..errors import Forbidden, NotFound, ValidationFailed
from ..models.user import Profile, Role
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Индийские права: 2 буквы штата, 2 цифры RTO, 4 цифры года, 7 цифр номера
LICENSE_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{2}[0-9]{4}[0-9]{7}$")

# поля, которые пользователь может править сам (по ролям)
_COMMON_FIELDS = ("full_name", "phone")
_DRIVER_FIELDS = ("driving_license", "vehicle_number", "vehicle_capacity")
_OWNER_FIELDS = ("company_name", "gst_number", "truck_count", "company_address")


def validate_driving_license(value: str | None) -> bool:
    return bool(value) and bool(LICENSE_PATTERN.match(value))


def parse_role(raw: str | None) -> Role:
    raw = str(raw or "Customer").strip().lower()
    for r in Role:
        if r.value.lower() == raw:
            return r
    raise ValidationFailed("Неизвестная роль")


def _clean(payload: Dict[str, Any], key: str) -> str | None:
    return (str(payload.get(key) or "")).strip() or None


def _capacity(raw) -> Decimal | None:
    if raw in (None, ""):
        return None
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        raise ValidationFailed("Грузоподъёмность должна быть числом")
    if value <= 0:
        raise ValidationFailed("Грузоподъёмность должна быть больше 0")
    return value


def _truck_count(raw) -> int | None:
    if raw in (None, ""):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationFailed("Количество грузовиков должно быть целым числом")
    if value < 0:
        raise ValidationFailed("Количество грузовиков не может быть отрицательным")
    return value


def normalize_role_fields(role: Role, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Приводит ролевые поля к виду для записи: права/номер авто/GST — в верхний регистр.
    """
    out: Dict[str, Any] = {}
    if role == Role.DRIVER:
        lic = _clean(payload, "driving_license")
        veh = _clean(payload, "vehicle_number")
        out["driving_license"] = lic.upper() if lic else None
        out["vehicle_number"] = veh.upper() if veh else None
        out["vehicle_capacity"] = _capacity(payload.get("vehicle_capacity"))
    elif role == Role.OWNER:
        gst = _clean(payload, "gst_number")
        out["company_name"] = _clean(payload, "company_name")
        out["gst_number"] = gst.upper() if gst else None
        out["truck_count"] = _truck_count(payload.get("truck_count"))
        out["company_address"] = _clean(payload, "company_address")
    return out


def validate_signup(role: Role, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Проверки анкеты регистрации. Возвращает нормализованные ролевые поля.
    """
    if not _clean(payload, "email") or not payload.get("password") or not _clean(payload, "phone"):
        raise ValidationFailed("Заполните email, пароль и телефон")

    fields = normalize_role_fields(role, payload)

    if role == Role.DRIVER:
        if not fields["driving_license"] or not fields["vehicle_number"] or fields["vehicle_capacity"] is None:
            raise ValidationFailed("Не заполнены данные водителя")
        if not validate_driving_license(fields["driving_license"]):
            raise ValidationFailed("Неверный формат водительского удостоверения")

    if role == Role.OWNER:
        if not all(fields[k] is not None for k in _OWNER_FIELDS):
            raise ValidationFailed("Не заполнены данные владельца")

    return fields


def create_profile(db: Session, principal_id: str, email: str, role: Role, payload: Dict[str, Any]) -> Profile:
    if db.get(Profile, principal_id):
        raise ValidationFailed("Профиль уже существует")

    p = Profile(
        id=principal_id,
        email=email,
        full_name=_clean(payload, "full_name") or email.split("@")[0],
        role=role,
        phone=_clean(payload, "phone"),
        **normalize_role_fields(role, payload),
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info(f"profile created id={p.id} role={role.value}")
    return p


def get_profile(db: Session, user_id: str) -> Profile:
    p = db.get(Profile, user_id)
    if not p:
        raise NotFound("Профиль не найден")
    return p


def update_profile(db: Session, actor, user_id: str, payload: Dict[str, Any]) -> Profile:
    """
    Править профиль может только его владелец. id и роль не меняются.
    """
    if actor.id != user_id:
        raise Forbidden("Можно изменять только свой профиль")
    p = get_profile(db, user_id)

    if "role" in payload and payload.get("role") not in (None, p.role.value):
        raise ValidationFailed("Роль изменить нельзя")

    allowed = _DRIVER_FIELDS if p.role == Role.DRIVER else _OWNER_FIELDS if p.role == Role.OWNER else ()
    role_fields = normalize_role_fields(p.role, payload)
    if p.role == Role.DRIVER and "driving_license" in payload \
            and not validate_driving_license(role_fields["driving_license"]):
        raise ValidationFailed("Неверный формат водительского удостоверения")

    for key in _COMMON_FIELDS:
        if key in payload:
            setattr(p, key, _clean(payload, key))
    for key in allowed:
        if key in payload:
            setattr(p, key, role_fields[key])

    db.commit()
    db.refresh(p)
    return p


def profile_to_dict(p: Profile) -> dict:
    out = {
        "id": p.id,
        "email": p.email,
        "full_name": p.full_name,
        "role": p.role.value,
        "phone": p.phone,
    }
    if p.role == Role.DRIVER:
        out.update({
            "driving_license": p.driving_license,
            "vehicle_number": p.vehicle_number,
            "vehicle_capacity": float(p.vehicle_capacity) if p.vehicle_capacity is not None else None,
        })
    elif p.role == Role.OWNER:
        out.update({
            "company_name": p.company_name,
            "gst_number": p.gst_number,
            "truck_count": p.truck_count,
            "company_address": p.company_address,
        })
    return out
