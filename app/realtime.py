# app/realtime.py
"""
Рассылка изменений по таблицам (bookings / driver_locations / trucks).
Доставка at-least-once внутри процесса, порядок между таблицами не гарантирован.
Подписчик не доверяет содержимому события — только перезапрашивает состояние.
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Iterable, Optional

BOOKINGS = "bookings"
DRIVER_LOCATIONS = "driver_locations"
TRUCKS = "trucks"

INSERT, UPDATE, DELETE = "INSERT", "UPDATE", "DELETE"


@dataclass
class Change:
    table: str
    event: str
    row_id: object
    row: dict = field(default_factory=dict)   # подсказка для фильтров, не источник правды

    def to_dict(self) -> dict:
        return {"table": self.table, "event": self.event, "row_id": self.row_id, "row": self.row}

    def to_sse(self) -> str:
        data = json.dumps(self.to_dict(), ensure_ascii=False, default=str)
        # формат SSE: event: <name>\ndata: <json>\n\n
        return f"event: {self.table}\ndata: {data}\n\n"


class Subscription:
    def __init__(self, hub: "_Hub", tables: Optional[Iterable[str]], events: Optional[Iterable[str]],
                 predicate: Optional[Callable[[Change], bool]]):
        self._hub = hub
        self.tables = set(tables) if tables else None
        self.events = {e.upper() for e in events} if events else None
        self.predicate = predicate
        self.queue: "asyncio.Queue[Change]" = asyncio.Queue()

    def wants(self, change: Change) -> bool:
        if self.tables is not None and change.table not in self.tables:
            return False
        if self.events is not None and change.event not in self.events:
            return False
        return self.predicate(change) if self.predicate else True

    async def get(self) -> Change:
        return await self.queue.get()

    def close(self) -> None:
        self._hub.unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    async def __aiter__(self) -> AsyncIterator[Change]:
        while True:
            yield await self.queue.get()


class _Hub:
    def __init__(self) -> None:
        self._subs: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def subscribe(self, tables=None, events=None, predicate=None) -> Subscription:
        sub = Subscription(self, tables, events, predicate)
        self._subs.add(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        self._subs.discard(sub)

    async def publish(self, table: str, event: str, row_id, **row) -> Change:
        """
        Разослать событие всем подходящим подписчикам. Очереди без лимита — ничего не теряем.
        """
        change = Change(table=table, event=event.upper(), row_id=row_id, row=row)
        for sub in list(self._subs):
            if sub.wants(change):
                sub.queue.put_nowait(change)
        return change

    async def stream(self, sub: Subscription) -> AsyncIterator[str]:
        """
        Асинхронный генератор сообщений SSE для подписки.
        """
        try:
            async for change in sub:
                yield change.to_sse()
        finally:
            sub.close()


def interest_for(actor) -> Callable[[Change], bool]:
    """
    Ролевой фильтр. Клиент — свои заявки, водитель — все заявки
    (общий пул Pending меняется, когда его разбирают другие), владелец — свои грузовики.
    Точки водителей интересны всем.
    """
    from .services.actors import CustomerActor, DriverActor, OwnerActor

    def _pred(change: Change) -> bool:
        if change.table == DRIVER_LOCATIONS:
            return True
        if change.table == BOOKINGS:
            if isinstance(actor, CustomerActor):
                return change.row.get("customer_id") == actor.id
            return isinstance(actor, DriverActor)
        if change.table == TRUCKS:
            return isinstance(actor, OwnerActor) and change.row.get("owner_id") == actor.id
        return False

    return _pred


hub = _Hub()
