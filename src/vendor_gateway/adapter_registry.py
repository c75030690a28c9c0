"""Adapter registry with an O(1) index of canonical ``adapter:tool`` ids."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from .adapters import MockAdapter, ToolExecutor, _maybe_await, select_executor
from .errors import AdapterNotExecutable, AdapterNotFound, AdapterRegistrationError, ToolNotFound
from .logging import redact_payload
from .models import ExecutionContext, ResolvedTool, ToolSpec
from .naming import alias_ids, canonical_tool_id, split_tool_id


logger = logging.getLogger(__name__)

ContextLike = Union[ExecutionContext, Mapping[str, Any], None]


def _get_header(headers: Mapping[str, Any], key: str) -> Any:
    if key in headers:
        return headers[key]
    lower = key.lower()
    for name, value in headers.items():
        if str(name).lower() == lower:
            return value
    return None


def _is_initialized(adapter: Any) -> bool:
    return bool(
        getattr(adapter, "_initialized", False)
        or getattr(adapter, "initialized", False)
        or getattr(adapter, "is_initialized", False)
    )


def _pick(entry: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


class AdapterRegistry:
    def __init__(self) -> None:
        self._adapters: Dict[str, Any] = {}
        self._executors: Dict[str, ToolExecutor] = {}
        self._tool_index: Dict[str, ResolvedTool] = {}
        self._aliases: Dict[str, str] = {}

    async def register(
        self,
        adapter: Any,
        adapter_id: Optional[str] = None,
        skip_initialize: bool = False,
        legacy: Optional[bool] = None,
    ) -> Any:
        if adapter is None:
            raise AdapterRegistrationError("register() requires an adapter instance")

        adapter_id = adapter_id or getattr(adapter, "id", None) or getattr(adapter, "name", None)
        if not adapter_id:
            raise AdapterRegistrationError("register() could not determine an adapter id")

        if not getattr(adapter, "id", None):
            adapter.id = adapter_id

        initialize = getattr(adapter, "initialize", None)
        if not skip_initialize and callable(initialize) and not _is_initialized(adapter):
            await _maybe_await(initialize())
            adapter._initialized = True

        self._adapters[adapter_id] = adapter
        executor = select_executor(adapter, legacy=legacy)
        if executor:
            self._executors[adapter_id] = executor
        else:
            self._executors.pop(adapter_id, None)

        tools = await self._discover_tools(adapter_id, adapter)
        indexed = 0
        for tool in tools:
            if not isinstance(tool, Mapping) or not tool.get("name"):
                continue
            self._index_tool(adapter_id, dict(tool))
            indexed += 1

        logger.info("Registered adapter=%s tools=%s executable=%s", adapter_id, indexed, bool(executor))
        return adapter

    def register_mock(self, entry: Mapping[str, Any]) -> Optional[MockAdapter]:
        adapter_id = entry.get("id")
        if not adapter_id:
            return None

        tool_count = 0
        for key in ("toolCount", "tool_count", "tools"):
            value = entry.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                tool_count = value
                break

        mock = MockAdapter(
            id=adapter_id,
            name=entry.get("name") or adapter_id,
            description=entry.get("description") or "",
            tools=tool_count,
            auth_type=_pick(entry, "authType", "auth_type", "auth") or "apikey",
            category=entry.get("category") or "general",
            supported_countries=_pick(entry, "supportedCountries", "supported_countries"),
            supported_currencies=_pick(entry, "supportedCurrencies", "supported_currencies"),
        )
        self._adapters[adapter_id] = mock
        self._executors.pop(adapter_id, None)
        logger.debug("Registered mock adapter=%s tools=%s", adapter_id, tool_count)
        return mock

    def get_adapter(self, adapter_id: str) -> Any:
        return self._adapters.get(adapter_id)

    def to_adapters_map(self) -> Dict[str, Any]:
        return dict(self._adapters)

    def get_stats(self) -> Dict[str, int]:
        mock = sum(1 for adapter in self._adapters.values() if getattr(adapter, "is_mock", False))
        return {
            "total_adapters": len(self._adapters),
            "real_adapters": len(self._adapters) - mock,
            "mock_adapters": mock,
            "indexed_tools": len(self._tool_index),
            "aliases": len(self._aliases),
        }

    def resolve_tool(self, tool_id: object) -> Optional[ResolvedTool]:
        if not isinstance(tool_id, str) or not tool_id:
            return None

        entry = self._tool_index.get(tool_id)
        if entry:
            return entry

        entry = self._lookup_alias(tool_id)
        if entry:
            return entry

        parts = split_tool_id(tool_id)
        if parts:
            candidate = canonical_tool_id(parts[0], parts[1])
            entry = self._tool_index.get(candidate) or self._lookup_alias(candidate)
            if entry:
                return entry

        return None

    def build_forward_headers(self, context: ContextLike = None) -> Dict[str, str]:
        ctx = ExecutionContext.from_value(context)
        headers = ctx.headers if isinstance(ctx.headers, Mapping) else {}

        fields = (
            ("Authorization", ctx.authorization or _get_header(headers, "Authorization")),
            ("X-API-Key", ctx.api_key or _get_header(headers, "X-API-Key")),
            ("apikey", _get_header(headers, "apikey")),
            ("X-Project-Scope", ctx.project_scope or _get_header(headers, "X-Project-Scope")),
            ("X-Request-ID", ctx.request_id or _get_header(headers, "X-Request-ID")),
            ("X-Session-ID", ctx.session_id or _get_header(headers, "X-Session-ID")),
        )
        return {name: value for name, value in fields if value}

    async def call_tool(
        self, tool_id: str, args: Optional[Dict[str, Any]] = None, context: ContextLike = None
    ) -> Any:
        resolved = self.resolve_tool(tool_id)
        if not resolved:
            # Mock adapters index no tools; their placeholder ids still name a mock.
            parts = split_tool_id(tool_id)
            if parts and getattr(self._adapters.get(parts[0]), "is_mock", False):
                raise AdapterNotExecutable(parts[0])
            raise ToolNotFound(tool_id)

        if resolved.adapter_id not in self._adapters:
            raise AdapterNotFound(resolved.adapter_id)

        executor = self._executors.get(resolved.adapter_id)
        if executor is None:
            raise AdapterNotExecutable(resolved.adapter_id)

        ctx = ExecutionContext.from_value(context)
        forwarded = self.build_forward_headers(ctx)
        logger.info(
            "Calling tool=%s args=%s headers=%s",
            resolved.canonical_id,
            redact_payload(args or {}),
            sorted(forwarded),
        )
        return await executor.execute(resolved.tool["name"], args or {}, ctx, forwarded)

    async def _discover_tools(self, adapter_id: str, adapter: Any) -> List[ToolSpec]:
        tools = getattr(adapter, "tools", None)
        if isinstance(tools, list):
            return tools

        list_tools = getattr(adapter, "list_tools", None)
        if not callable(list_tools):
            return []
        try:
            listed = await _maybe_await(list_tools())
        except Exception as exc:
            logger.warning("Tool listing failed for adapter=%s: %s", adapter_id, exc)
            return []
        return listed if isinstance(listed, list) else []

    def _index_tool(self, adapter_id: str, tool: ToolSpec) -> None:
        canonical = canonical_tool_id(adapter_id, tool["name"])
        # First tool wins; later duplicates still get aliases to the same id.
        if canonical not in self._tool_index:
            self._tool_index[canonical] = ResolvedTool(
                canonical_id=canonical, adapter_id=adapter_id, tool=tool
            )
        else:
            logger.debug("Duplicate tool id ignored for indexing: %s", canonical)

        for alias in alias_ids(adapter_id, tool["name"]):
            self._aliases[alias] = canonical

    def _lookup_alias(self, tool_id: str) -> Optional[ResolvedTool]:
        target = self._aliases.get(tool_id) or self._aliases.get(tool_id.lower())
        if target:
            return self._tool_index.get(target)
        return self._tool_index.get(tool_id.lower())
