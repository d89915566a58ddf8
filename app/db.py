from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from .config import settings

# ---------- Declarative Base ----------
class Base(DeclarativeBase):
    pass

# ---------- Engine / Session ----------
# Строка берётся из настроек (например из .env через app.config.settings)
DATABASE_URL = settings.DATABASE_URL

# Поддержка SQLite и PostgreSQL
if DATABASE_URL and DATABASE_URL.startswith("sqlite"):
    # Для sqlite важно указать check_same_thread=False для многопоточного доступа
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        pool_pre_ping=True,
        future=True,
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        future=True,
    )

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)


def init_db(bind=None):
    """
    Создать таблицы (удобно для разработки). В проде — миграции.
    Импорт моделей нужен, чтобы все таблицы попали в metadata.
    """
    from app.models import user, booking, location, truck  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


# ---------- Dependency ----------
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
