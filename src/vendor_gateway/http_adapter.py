"""Generic HTTP vendor client usable as an executable adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import AdapterExecutionError
from .logging import redact_payload
from .models import ExecutionContext, ToolSpec
from .naming import canonical_tool_name


logger = logging.getLogger(__name__)


class HttpToolAdapter:
    """Calls ``base_url + tool.metadata.path`` with only the forwarded headers.

    Retries live here, in the vendor client, never in the registry.
    """

    def __init__(
        self,
        id: str,
        base_url: str,
        tools: List[ToolSpec],
        name: Optional[str] = None,
        description: str = "",
        auth_type: str = "bearer",
        category: Optional[str] = None,
        supported_countries: Optional[List[str]] = None,
        supported_currencies: Optional[List[str]] = None,
        timeout_seconds: float = 30,
        max_retries: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.id = id
        self.name = name or id
        self.description = description
        self.base_url = base_url
        self.tools = tools
        self.auth_type = auth_type
        self.category = category
        self.supported_countries = supported_countries
        self.supported_currencies = supported_currencies
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.transport = transport

    def find_tool(self, tool_name: str) -> Optional[ToolSpec]:
        wanted = canonical_tool_name(tool_name)
        for tool in self.tools:
            if tool.get("name") == tool_name:
                return tool
        for tool in self.tools:
            if canonical_tool_name(tool.get("name")) == wanted:
                return tool
        return None

    async def call_tool(
        self, tool_name: str, args: Dict[str, Any], context: ExecutionContext
    ) -> Any:
        tool = self.find_tool(tool_name)
        if tool is None:
            raise AdapterExecutionError(f"Unknown tool for adapter {self.id}: {tool_name}")

        metadata = tool.get("metadata") or {}
        method = str(metadata.get("method") or "POST").upper()
        url, used_keys = self._build_url(self.base_url, metadata.get("path") or "/", args)
        remaining = {key: value for key, value in args.items() if key not in used_keys}

        headers: Dict[str, str] = {"Content-Type": "application/json", **dict(context.headers)}
        query: Dict[str, str] = {}
        body: Optional[Dict[str, Any]] = None
        if method in ("GET", "DELETE"):
            query = self._extract_query_params(remaining)
        else:
            body = remaining

        attempt = 0
        while True:
            attempt += 1
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds, transport=self.transport
                ) as client:
                    response = await client.request(
                        method, url, headers=headers, params=query, json=body
                    )
                response.raise_for_status()
                return response.json() if response.content else {"status": "ok"}
            except (httpx.HTTPError, ValueError) as exc:
                if attempt > self.max_retries:
                    raise AdapterExecutionError(
                        f"{self.id}:{tool_name} failed: {exc}", {"adapter_id": self.id}
                    ) from exc
                backoff = min(2 ** attempt, 6)
                logger.warning(
                    "HTTP call failed (attempt %s/%s). Retrying in %ss. tool=%s payload=%s",
                    attempt,
                    self.max_retries,
                    backoff,
                    tool_name,
                    redact_payload(args),
                )
                await asyncio.sleep(backoff)

    def _build_url(self, base_url: str, path: str, payload: Dict[str, Any]) -> tuple[str, set[str]]:
        url = base_url.rstrip("/") + "/" + path.lstrip("/")
        used_keys: set[str] = set()
        for key, value in payload.items():
            token = f"{{{key}}}"
            if token in url:
                url = url.replace(token, str(value))
                used_keys.add(key)
        return url, used_keys

    def _extract_query_params(self, payload: Dict[str, Any]) -> Dict[str, str]:
        query: Dict[str, str] = {}
        for key, value in payload.items():
            if isinstance(value, bool):
                query[key] = str(value).lower()
            elif isinstance(value, (str, int, float)):
                query[key] = str(value)
        return query
