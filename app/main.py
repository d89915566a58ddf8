# app/main.py
import time

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from .config import settings
from .db import init_db
from .errors import TruckyError
from .utils.logger import get_logger

from .routers import (
    auth as auth_router,
    profile as profile_router,
    bookings as bookings_router,
    locations as locations_router,
    fleet as fleet_router,
    stream as stream_router,
)

logger = get_logger(__name__)

app = FastAPI(title="Trucky Dispatch")

# --- CORS ---
allowed_origins = (
    [o.strip() for o in settings.ALLOWED_ORIGINS.split(",")]
    if getattr(settings, "ALLOWED_ORIGINS", None)
    else ["*"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Сессии (токен провайдера после /api/auth/login) ---
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.COOKIE_NAME,
    same_site=(settings.COOKIE_SAMESITE or "lax"),
    https_only=settings.COOKIE_SECURE,
)


# --- Время запросов ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# --- Ошибки ядра → JSON ---
@app.exception_handler(TruckyError)
async def trucky_error_handler(request: Request, exc: TruckyError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.code, "detail": exc.detail},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "error": "internal", "detail": "Internal server error"},
    )


# --- Подключение роутеров ---
app.include_router(auth_router.router)
app.include_router(profile_router.router)
app.include_router(bookings_router.router)
app.include_router(locations_router.router)
app.include_router(fleet_router.router)
app.include_router(stream_router.router)


# --- Инициализация БД ---
@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Trucky dispatch API started")
