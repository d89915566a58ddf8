"""Клиент провайдера авторизации поверх httpx.MockTransport."""

import json

import httpx
import pytest

from app.errors import Unauthorized, UpstreamUnavailable, ValidationFailed
from app.services.auth_client import AuthClient

USER = {"id": "8d0c7e4e-0000-4000-8000-000000000001", "email": "asha@trucky.test"}


def make_client(handler):
    return AuthClient(base_url="http://auth.test/auth/v1", api_key="anon", transport=httpx.MockTransport(handler))


class TestSignUp:
    @pytest.mark.asyncio
    async def test_with_session(self):
        def handler(request):
            assert request.url.path == "/auth/v1/signup"
            assert request.headers["apikey"] == "anon"
            assert json.loads(request.content) == {"email": "asha@trucky.test", "password": "pw"}
            return httpx.Response(200, json={"access_token": "tok", "refresh_token": "ref", "user": USER})

        res = await make_client(handler).sign_up("asha@trucky.test", "pw")
        assert res.principal.id == USER["id"]
        assert res.session.access_token == "tok"

    @pytest.mark.asyncio
    async def test_email_confirmation_required(self):
        res = await make_client(lambda r: httpx.Response(200, json=USER)).sign_up("asha@trucky.test", "pw")
        assert res.principal.id == USER["id"]
        assert res.session is None

    @pytest.mark.asyncio
    async def test_rejected(self):
        client = make_client(lambda r: httpx.Response(422, json={"msg": "Password should be at least 6 characters"}))
        with pytest.raises(ValidationFailed) as exc:
            await client.sign_up("asha@trucky.test", "pw")
        assert "Password" in exc.value.detail

    @pytest.mark.asyncio
    async def test_provider_down(self):
        with pytest.raises(UpstreamUnavailable):
            await make_client(lambda r: httpx.Response(502)).sign_up("a@b.c", "pw")


class TestSignIn:
    @pytest.mark.asyncio
    async def test_password_grant(self):
        def handler(request):
            assert request.url.path == "/auth/v1/token"
            assert request.url.params["grant_type"] == "password"
            return httpx.Response(200, json={"access_token": "tok", "user": USER})

        session = await make_client(handler).sign_in_with_password("asha@trucky.test", "pw")
        assert session.access_token == "tok"
        assert session.principal.email == USER["email"]

    @pytest.mark.asyncio
    async def test_bad_credentials(self):
        client = make_client(lambda r: httpx.Response(400, json={"error_description": "Invalid login credentials"}))
        with pytest.raises(Unauthorized):
            await client.sign_in_with_password("asha@trucky.test", "nope")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamUnavailable):
            await make_client(handler).sign_in_with_password("a@b.c", "pw")


class TestGetUser:
    @pytest.mark.asyncio
    async def test_valid_token(self):
        def handler(request):
            assert request.headers["authorization"] == "Bearer tok"
            return httpx.Response(200, json=USER)

        principal = await make_client(handler).get_user("tok")
        assert principal.id == USER["id"]

    @pytest.mark.asyncio
    async def test_expired_token(self):
        assert await make_client(lambda r: httpx.Response(401, json={})).get_user("old") is None
