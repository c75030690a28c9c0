"""Searchable catalog of every operation exposed by the registered adapters."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from .adapters import _maybe_await
from .classify import (
    extract_optional_params,
    extract_required_params,
    infer_adapter_category,
    infer_capabilities,
    infer_countries,
    infer_currencies,
    infer_risk_level,
    infer_tags,
    title_case,
)
from .models import AdapterInfo, Operation, ServiceInfo, ToolSpec
from .naming import canonical_tool_id


logger = logging.getLogger(__name__)


@dataclass
class RegistryIndex:
    operations: Dict[str, Operation] = field(default_factory=dict)
    adapters: Dict[str, Union[AdapterInfo, ServiceInfo]] = field(default_factory=dict)
    by_tag: Dict[str, List[str]] = field(default_factory=dict)
    by_category: Dict[str, List[str]] = field(default_factory=dict)
    by_adapter: Dict[str, List[str]] = field(default_factory=dict)
    built_at: Optional[str] = None

    def add_operation(self, operation: Operation) -> bool:
        if operation.tool_id in self.operations:
            return False
        self.operations[operation.tool_id] = operation
        self.by_adapter.setdefault(operation.adapter, []).append(operation.tool_id)
        for tag in operation.tags:
            self.by_tag.setdefault(tag, []).append(operation.tool_id)
        self.by_category.setdefault(operation.category, []).append(operation.tool_id)
        return True

    def lookup(self, tool_ids: Optional[List[str]]) -> List[Operation]:
        return [self.operations[tool_id] for tool_id in tool_ids or []]


class OperationRegistry:
    """Read-mostly view over the adapter catalog.

    ``build_from_adapters`` assembles a complete ``RegistryIndex`` off to the
    side and publishes it with a single assignment, so queries always see
    either the previous index or the new one.
    """

    def __init__(self) -> None:
        self._index = RegistryIndex()

    @property
    def built_at(self) -> Optional[str]:
        return self._index.built_at

    async def build_from_adapters(
        self,
        adapters_map: Mapping[str, Any],
        services_map: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> None:
        logger.info("Building operation registry from %s adapters", len(adapters_map))
        index = RegistryIndex()
        for adapter_id, adapter in list(adapters_map.items()):
            await self._index_adapter(index, adapter_id, adapter)

        for service_name, service in (services_map or {}).items():
            self._index_service(index, service_name, service)

        index.built_at = datetime.now(timezone.utc).isoformat()
        self._index = index
        logger.info(
            "Registry built: %s operations, %s adapters",
            len(index.operations),
            len(index.adapters),
        )

    def index_service(self, name: str, service: Mapping[str, Any]) -> ServiceInfo:
        return self._index_service(self._index, name, service)

    def _index_service(
        self, index: RegistryIndex, name: str, service: Mapping[str, Any]
    ) -> ServiceInfo:
        info = service.get("info") or {}
        servers = service.get("servers") or []
        first_server = servers[0] if servers and isinstance(servers[0], Mapping) else {}
        meta = ServiceInfo(
            id=name,
            name=info.get("name") or info.get("title") or service.get("name") or name,
            description=info.get("description") or service.get("description") or "",
            category=service.get("category") or "api-service",
            base_url=first_server.get("url") or service.get("base_url") or "",
            version=info.get("version") or service.get("version") or "1.0.0",
        )
        index.adapters[f"service:{name}"] = meta
        return meta

    async def _index_adapter(self, index: RegistryIndex, adapter_id: str, adapter: Any) -> None:
        meta = self._extract_adapter_meta(adapter_id, adapter)
        index.adapters[adapter_id] = meta

        raw_tools = getattr(adapter, "tools", None)
        tools: List[ToolSpec] = []
        if isinstance(raw_tools, list):
            tools = raw_tools
        elif callable(getattr(adapter, "list_tools", None)):
            try:
                listed = await _maybe_await(adapter.list_tools())
                tools = listed if isinstance(listed, list) else []
            except Exception as exc:
                logger.warning("Failed to list tools for %s: %s", adapter_id, exc)
        elif isinstance(raw_tools, int) and not isinstance(raw_tools, bool):
            for operation in self._placeholder_operations(adapter_id, raw_tools, meta.category):
                index.add_operation(operation)
            return

        for tool in tools:
            if not isinstance(tool, Mapping) or not tool.get("name"):
                continue
            if not index.add_operation(self._tool_operation(adapter_id, tool, meta.category)):
                logger.debug("Duplicate operation ignored: %s:%s", adapter_id, tool["name"])

    def _tool_operation(self, adapter_id: str, tool: Mapping[str, Any], default_category: str) -> Operation:
        name = str(tool["name"])
        description = tool.get("description") or ""
        metadata = tool.get("metadata") or {}
        schema = tool.get("input_schema") or tool.get("inputSchema")
        return Operation(
            tool_id=canonical_tool_id(adapter_id, name),
            adapter=adapter_id,
            tool=name,
            name=title_case(name),
            description=description,
            tags=infer_tags(adapter_id, name, description),
            method=str(metadata.get("method") or "POST").upper(),
            risk_level=infer_risk_level(name, description),
            category=metadata.get("category") or default_category or "general",
            is_mock=False,
            input_schema=schema if isinstance(schema, dict) else None,
            required_params=extract_required_params(schema),
            optional_params=extract_optional_params(schema),
        )

    def _placeholder_operations(self, adapter_id: str, count: int, category: str) -> List[Operation]:
        operations = []
        for i in range(1, count + 1):
            tool = f"tool-{i}"
            operations.append(
                Operation(
                    tool_id=f"{adapter_id}:{tool}",
                    adapter=adapter_id,
                    tool=tool,
                    name=f"Tool {i}",
                    description=f"Operation {i} from {adapter_id}",
                    tags=infer_tags(adapter_id, tool),
                    method="POST",
                    risk_level="medium",
                    category=category or "general",
                    is_mock=True,
                    input_schema=None,
                )
            )
        return operations

    def _extract_adapter_meta(self, adapter_id: str, adapter: Any) -> AdapterInfo:
        category = infer_adapter_category(adapter_id)
        if category == "general":
            category = getattr(adapter, "category", None) or category
        return AdapterInfo(
            id=adapter_id,
            name=getattr(adapter, "name", None) or title_case(adapter_id),
            description=getattr(adapter, "description", None) or f"{title_case(adapter_id)} API adapter",
            category=category,
            capabilities=infer_capabilities(adapter_id),
            supported_countries=list(
                getattr(adapter, "supported_countries", None) or infer_countries(adapter_id)
            ),
            supported_currencies=list(
                getattr(adapter, "supported_currencies", None) or infer_currencies(adapter_id)
            ),
            tool_count=self._tool_count(adapter),
            auth_type=getattr(adapter, "auth_type", None) or getattr(adapter, "auth", None) or "bearer",
            status="operational",
            is_mock=isinstance(getattr(adapter, "tools", None), int)
            and not isinstance(getattr(adapter, "tools", None), bool),
        )

    def _tool_count(self, adapter: Any) -> int:
        tools = getattr(adapter, "tools", None)
        if isinstance(tools, list):
            return len(tools)
        if isinstance(tools, int) and not isinstance(tools, bool):
            return tools
        tool_count = getattr(adapter, "tool_count", None)
        return tool_count if isinstance(tool_count, int) else 0

    # Queries

    def get_operation(self, tool_id: str) -> Optional[Operation]:
        return self._index.operations.get(tool_id)

    def get_adapter_operations(self, adapter_id: str) -> List[Operation]:
        index = self._index
        return index.lookup(index.by_adapter.get(adapter_id))

    def get_adapter(self, adapter_id: str) -> Optional[Union[AdapterInfo, ServiceInfo]]:
        return self._index.adapters.get(adapter_id)

    def get_all_adapters(self) -> List[Union[AdapterInfo, ServiceInfo]]:
        return list(self._index.adapters.values())

    def get_all_operations(self) -> List[Operation]:
        return list(self._index.operations.values())

    def get_by_tag(self, tag: str) -> List[Operation]:
        index = self._index
        return index.lookup(index.by_tag.get(tag))

    def get_by_category(self, category: str) -> List[Operation]:
        index = self._index
        return index.lookup(index.by_category.get(category))

    def get_operation_count(self) -> int:
        return len(self._index.operations)

    def get_all_tags(self) -> List[str]:
        return list(self._index.by_tag)

    def get_all_categories(self) -> List[str]:
        return list(self._index.by_category)
