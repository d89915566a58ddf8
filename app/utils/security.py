import time
from jose import jwt, JWTError
from ..config import settings


def create_access_token(sub: str, email: str | None = None, ttl_sec: int = 3600) -> str:
    # токен в формате провайдера; нужен для локальной разработки и тестов
    now = int(time.time())
    payload = {"sub": sub, "aud": settings.AUTH_AUDIENCE, "iat": now, "exp": now + ttl_sec}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str):
    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            audience=settings.AUTH_AUDIENCE,
        )
    except JWTError:
        return None
