"""
Клиент внешнего провайдера авторизации (GoTrue-совместимый REST).
Саму авторизацию не реализуем: регистрация, вход и проверка токена — у провайдера.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..errors import Unauthorized, UpstreamUnavailable, ValidationFailed
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Principal:
    id: str
    email: str | None = None


@dataclass
class AuthSession:
    access_token: str
    principal: Principal
    refresh_token: str | None = None


@dataclass
class SignUpResult:
    principal: Principal | None
    # None — нужно подтвердить e-mail, сессии пока нет
    session: AuthSession | None


def _principal(data: Dict[str, Any] | None) -> Optional[Principal]:
    if not data or not data.get("id"):
        return None
    return Principal(id=str(data["id"]), email=data.get("email"))


def _session(data: Dict[str, Any]) -> Optional[AuthSession]:
    token = data.get("access_token")
    user = _principal(data.get("user"))
    if not token or not user:
        return None
    return AuthSession(access_token=token, principal=user, refresh_token=data.get("refresh_token"))


class AuthClient:
    def __init__(self, base_url: str | None = None, api_key: str | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = (base_url or settings.AUTH_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.AUTH_API_KEY
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"apikey": self.api_key} if self.api_key else {}
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.HTTP_TIMEOUT_SEC,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as c:
                return await c.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"auth provider {method} {path} failed: {e}")
            raise UpstreamUnavailable("Сервис авторизации недоступен")

    @staticmethod
    def _error_message(r: httpx.Response) -> str:
        try:
            body = r.json()
        except ValueError:
            return r.text or f"HTTP {r.status_code}"
        return body.get("msg") or body.get("error_description") or body.get("message") or f"HTTP {r.status_code}"

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        r = await self._request("POST", "/signup", json={"email": email, "password": password})
        if r.status_code >= 500:
            raise UpstreamUnavailable("Сервис авторизации недоступен")
        if r.status_code >= 400:
            raise ValidationFailed(self._error_message(r))

        data = r.json()
        # с автоподтверждением провайдер сразу отдаёт сессию, иначе — только пользователя
        session = _session(data)
        principal = session.principal if session else _principal(data.get("user") or data)
        return SignUpResult(principal=principal, session=session)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        r = await self._request(
            "POST", "/token", params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if r.status_code >= 500:
            raise UpstreamUnavailable("Сервис авторизации недоступен")
        if r.status_code >= 400:
            raise Unauthorized(self._error_message(r))

        session = _session(r.json())
        if not session:
            raise Unauthorized("Провайдер не вернул сессию")
        return session

    async def get_user(self, access_token: str) -> Principal | None:
        r = await self._request("GET", "/user", headers={"Authorization": f"Bearer {access_token}"})
        if r.status_code in (401, 403):
            return None
        if r.status_code >= 400:
            raise UpstreamUnavailable("Сервис авторизации недоступен")
        return _principal(r.json())


auth_client = AuthClient()


def get_auth_client() -> AuthClient:
    return auth_client
