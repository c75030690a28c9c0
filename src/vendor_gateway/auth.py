"""Request authentication against the upstream auth service."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx
import jwt


logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    authenticated: bool
    user: Optional[Dict[str, Any]] = None
    method: str = "none"
    error: Optional[str] = None


class AuthBridge:
    """Validates bearer tokens and API keys.

    Tokens signed with ``jwt_secret`` for the configured project scope are
    accepted locally; anything else is checked against ``GET /session`` on
    the auth service. Outcomes are cached per credential.
    """

    def __init__(
        self,
        auth_api_url: Optional[str],
        jwt_secret: Optional[str] = None,
        project_scope: str = "vendor-gateway",
        cache_seconds: int = 300,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.auth_api_url = auth_api_url.rstrip("/") if auth_api_url else None
        self.jwt_secret = jwt_secret
        self.project_scope = project_scope
        self.cache_seconds = cache_seconds
        self.transport = transport
        self._cache: Dict[str, Tuple[float, AuthResult]] = {}

    @property
    def enabled(self) -> bool:
        return bool(self.auth_api_url or self.jwt_secret)

    async def validate(self, headers: Mapping[str, str]) -> AuthResult:
        lowered = {key.lower(): value for key, value in headers.items()}
        auth_header = lowered.get("authorization", "")
        api_key = lowered.get("x-api-key")

        if auth_header.startswith("Bearer "):
            return await self._cached(f"jwt:{auth_header[7:]}", self._validate_token, auth_header[7:])
        if api_key:
            return await self._cached(f"key:{api_key}", self._validate_api_key, api_key)
        return AuthResult(authenticated=False)

    async def _cached(self, key: str, validator, credential: str) -> AuthResult:  # type: ignore[no-untyped-def]
        now = time.time()
        cached = self._cache.get(key)
        if cached:
            if now - cached[0] < self.cache_seconds:
                return cached[1]
            del self._cache[key]
        result = await validator(credential)
        if result.authenticated:
            self._evict_expired(now)
            self._cache[key] = (now, result)
        return result

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (stored, _) in self._cache.items() if now - stored >= self.cache_seconds]
        for key in expired:
            del self._cache[key]

    async def _validate_token(self, token: str) -> AuthResult:
        if self.jwt_secret:
            try:
                claims = jwt.decode(token, self.jwt_secret, algorithms=["HS256"])
                if claims.get("project_scope") == self.project_scope:
                    return AuthResult(
                        authenticated=True,
                        user={
                            "id": claims.get("id") or claims.get("sub"),
                            "email": claims.get("email"),
                            "role": claims.get("role"),
                            "project_scope": claims.get("project_scope"),
                        },
                        method="jwt_local",
                    )
            except jwt.PyJWTError as exc:
                logger.debug("Local JWT validation failed: %s", exc)

        return await self._remote_session(
            {"Authorization": f"Bearer {token}"}, success="jwt_remote", failure="jwt_invalid"
        )

    async def _validate_api_key(self, api_key: str) -> AuthResult:
        return await self._remote_session(
            {"X-API-Key": api_key}, success="api_key", failure="api_key_invalid"
        )

    async def _remote_session(self, headers: Dict[str, str], success: str, failure: str) -> AuthResult:
        if not self.auth_api_url:
            return AuthResult(authenticated=False, method=failure, error="No auth service configured")

        try:
            async with httpx.AsyncClient(timeout=10, transport=self.transport) as client:
                response = await client.get(
                    f"{self.auth_api_url}/session",
                    headers={**headers, "X-Project-Scope": self.project_scope},
                )
        except httpx.HTTPError as exc:
            logger.warning("Auth service unreachable: %s", exc)
            return AuthResult(authenticated=False, method=f"{success}_error", error=str(exc))

        if response.status_code != 200:
            return AuthResult(authenticated=False, method=failure, error="Credential validation failed")
        try:
            data = response.json()
        except ValueError:
            logger.warning("Auth service returned a non-JSON session body")
            return AuthResult(authenticated=False, method=failure, error="Malformed session response")
        if not isinstance(data, dict):
            return AuthResult(authenticated=False, method=failure, error="Malformed session response")
        return AuthResult(authenticated=True, user=data.get("user"), method=success)
