"""Adapter execution variants and the mock placeholder adapter."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .models import ExecutionContext


LEGACY_CALL_CONVENTION = "legacy"


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ToolExecutor:
    """Single execution shape the registry dispatches through."""

    def __init__(self, adapter: Any) -> None:
        self.adapter = adapter

    async def execute(
        self,
        tool_name: str,
        args: Dict[str, Any],
        context: ExecutionContext,
        forwarded_headers: Dict[str, str],
    ) -> Any:
        raise NotImplementedError


class ContextExecutor(ToolExecutor):
    async def execute(
        self,
        tool_name: str,
        args: Dict[str, Any],
        context: ExecutionContext,
        forwarded_headers: Dict[str, str],
    ) -> Any:
        scoped = replace(context, headers=dict(forwarded_headers))
        return await _maybe_await(self.adapter.call_tool(tool_name, args, scoped))


class LegacyExecutor(ToolExecutor):
    """Adapters that take ``(tool_name, {"data": ..., "headers": ...})``."""

    async def execute(
        self,
        tool_name: str,
        args: Dict[str, Any],
        context: ExecutionContext,
        forwarded_headers: Dict[str, str],
    ) -> Any:
        payload = {"data": args, "headers": dict(forwarded_headers)}
        return await _maybe_await(self.adapter.call_tool(tool_name, payload))


def select_executor(adapter: Any, legacy: Optional[bool] = None) -> Optional[ToolExecutor]:
    if getattr(adapter, "is_mock", False) or not callable(getattr(adapter, "call_tool", None)):
        return None
    if legacy is None:
        legacy = getattr(adapter, "call_convention", None) == LEGACY_CALL_CONVENTION
    if legacy:
        return LegacyExecutor(adapter)
    return ContextExecutor(adapter)


@dataclass
class MockAdapter:
    """Discovery-only placeholder; ``tools`` is a count, not a list."""

    id: str
    name: str
    description: str = ""
    tools: int = 0
    auth_type: str = "apikey"
    category: str = "general"
    supported_countries: Optional[List[str]] = None
    supported_currencies: Optional[List[str]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_mock: bool = True
    executable: bool = False

    @property
    def tool_count(self) -> int:
        return self.tools
