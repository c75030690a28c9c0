"""Tests for the auth bridge."""

from typing import List

import httpx
import jwt
import pytest

from vendor_gateway.auth import AuthBridge


SECRET = "test-secret-that-is-long-enough-for-hs256"


def _token(**claims) -> str:  # type: ignore[no-untyped-def]
    return jwt.encode(claims, SECRET, algorithm="HS256")


def _session_transport(seen: List[httpx.Request], status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status, json={"user": {"id": "remote-user"}})

    return httpx.MockTransport(handler)


class TestAuthBridge:
    @pytest.mark.asyncio
    async def test_no_credentials(self) -> None:
        result = await AuthBridge("https://auth.example.com").validate({})

        assert result.authenticated is False
        assert result.method == "none"

    @pytest.mark.asyncio
    async def test_local_jwt_with_matching_scope(self) -> None:
        bridge = AuthBridge(None, jwt_secret=SECRET, project_scope="vendor-gateway")
        token = _token(id="u1", email="ada@example.com", project_scope="vendor-gateway")

        result = await bridge.validate({"Authorization": f"Bearer {token}"})

        assert result.authenticated is True
        assert result.method == "jwt_local"
        assert result.user["id"] == "u1"

    @pytest.mark.asyncio
    async def test_wrong_scope_falls_back_to_remote(self) -> None:
        seen: List[httpx.Request] = []
        bridge = AuthBridge(
            "https://auth.example.com/v1/auth/",
            jwt_secret=SECRET,
            transport=_session_transport(seen),
        )

        result = await bridge.validate({"authorization": f"Bearer {_token(id='u1', project_scope='other')}"})

        assert result.method == "jwt_remote"
        assert result.user == {"id": "remote-user"}
        assert str(seen[0].url) == "https://auth.example.com/v1/auth/session"
        assert seen[0].headers["x-project-scope"] == "vendor-gateway"

    @pytest.mark.asyncio
    async def test_rejected_token(self) -> None:
        seen: List[httpx.Request] = []
        bridge = AuthBridge("https://auth.example.com", transport=_session_transport(seen, 401))

        result = await bridge.validate({"Authorization": "Bearer nope"})

        assert result.authenticated is False
        assert result.method == "jwt_invalid"

    @pytest.mark.asyncio
    async def test_api_key_is_validated_remotely_and_cached(self) -> None:
        seen: List[httpx.Request] = []
        bridge = AuthBridge("https://auth.example.com", transport=_session_transport(seen))

        first = await bridge.validate({"X-API-Key": "key-123"})
        second = await bridge.validate({"x-api-key": "key-123"})

        assert first.method == second.method == "api_key"
        assert len(seen) == 1
        assert seen[0].headers["x-api-key"] == "key-123"

    @pytest.mark.asyncio
    async def test_without_auth_service_tokens_fail(self) -> None:
        result = await AuthBridge(None).validate({"Authorization": "Bearer nope"})

        assert result.authenticated is False
        assert AuthBridge(None).enabled is False

    @pytest.mark.asyncio
    async def test_expired_cache_entries_are_dropped(self) -> None:
        seen: List[httpx.Request] = []
        bridge = AuthBridge("https://auth.example.com", cache_seconds=0, transport=_session_transport(seen))

        await bridge.validate({"X-API-Key": "key-1"})
        await bridge.validate({"X-API-Key": "key-2"})

        assert list(bridge._cache) == ["key:key-2"]
        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_non_json_session_body_is_rejected(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>ok</html>"))
        bridge = AuthBridge("https://auth.example.com", transport=transport)

        result = await bridge.validate({"X-API-Key": "key-123"})

        assert result.authenticated is False
        assert result.method == "api_key_invalid"
        assert bridge._cache == {}
