# app/routers/stream.py
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ..deps import get_current_actor
from ..realtime import hub, interest_for
from ..services.actors import Actor

router = APIRouter(tags=["stream"])


def _split(raw: str | None):
    items = [x.strip() for x in (raw or "").split(",") if x.strip()]
    return items or None


# ---------- Real-time stream (SSE) ----------
@router.get("/api/stream")
async def api_stream(
    tables: str | None = Query(None, description="bookings,driver_locations,trucks"),
    events: str | None = Query(None, description="INSERT,UPDATE,DELETE"),
    actor: Actor = Depends(get_current_actor),
):
    """
    События изменений по ролям. Клиент на каждое событие перезапрашивает данные.
    """
    sub = hub.subscribe(tables=_split(tables), events=_split(events), predicate=interest_for(actor))

    async def gen():
        try:
            # первый «комментарий» держит канал открытым даже за прокси
            yield ": ok\n\n"
            async for msg in hub.stream(sub):
                yield msg
        finally:
            # клиент мог уйти ещё до первого события
            sub.close()

    return StreamingResponse(gen(), media_type="text/event-stream",
                             headers={"Cache-Control": "no-store"})
