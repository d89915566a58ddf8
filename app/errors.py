# app/errors.py
"""
Ошибки ядра бронирований. Каждая знает свой HTTP-код,
а main.py превращает их в JSON-ответ одним обработчиком.
"""
from __future__ import annotations


class TruckyError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.code)
        self.detail = detail or self.code


# у актора нет нужной роли для операции
class InvalidRole(TruckyError, PermissionError):
    code = "invalid_role"
    status_code = 403


# актор не владелец / не назначенный водитель
class Forbidden(TruckyError, PermissionError):
    code = "forbidden"
    status_code = 403


class NotFound(TruckyError, LookupError):
    code = "not_found"
    status_code = 404


# не выполнено предусловие по статусу
class InvalidTransition(TruckyError, ValueError):
    code = "invalid_transition"
    status_code = 409


# проиграли гонку за эксклюзивный переход
class Conflict(TruckyError, ValueError):
    code = "conflict"
    status_code = 409


class StaleReport(Conflict):
    code = "stale_report"


class ValidationFailed(TruckyError, ValueError):
    code = "validation_failed"
    status_code = 400


class Unauthorized(TruckyError, PermissionError):
    code = "unauthorized"
    status_code = 401


# хранилище / авторизация / геокодер недоступны
class UpstreamUnavailable(TruckyError):
    code = "upstream_unavailable"
    status_code = 503
