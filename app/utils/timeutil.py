import datetime as dt


def utcnow() -> dt.datetime:
    # в БД время хранится naive UTC
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def iso(value):
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return value
