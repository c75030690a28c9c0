"""Discovery meta-tools: adapters, tools, intent search and guarded execution."""

from __future__ import annotations

import logging
import time
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set

from .adapter_registry import AdapterRegistry, ContextLike
from .errors import GatewayError
from .models import Operation
from .naming import split_tool_id
from .operation_registry import OperationRegistry
from .search import SearchEngine


logger = logging.getLogger(__name__)

_DESTRUCTIVE = ("delete", "cancel", "remove", "revoke")

_JSON_TYPES = {
    "string": (str,),
    "number": (int, float),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
}


def _failure(code: str, message: str, **extra: Any) -> Dict[str, Any]:
    return {"success": False, "error": {"code": code, "message": message, **extra}}


def _type_error(key: str, value: Any, schema: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    expected = schema.get("type")
    if expected == "integer":
        if isinstance(value, bool) or not isinstance(value, int):
            return {"code": "INVALID_PARAM_TYPE", "message": f"Parameter '{key}' must be an integer"}
        return None
    allowed = _JSON_TYPES.get(expected)
    if allowed is None:
        return None
    if isinstance(value, bool) and expected != "boolean":
        allowed = ()
    if not isinstance(value, allowed):
        return {
            "code": "INVALID_PARAM_TYPE",
            "message": f"Parameter '{key}' must be of type {expected}",
        }
    if schema.get("enum") and value not in schema["enum"]:
        return {
            "code": "INVALID_PARAM_VALUE",
            "message": f"Parameter '{key}' must be one of: {', '.join(map(str, schema['enum']))}",
        }
    return None


class GatewayDiscovery:
    def __init__(
        self,
        adapter_registry: AdapterRegistry,
        operation_registry: OperationRegistry,
        search_engine: SearchEngine,
        allowlist: Optional[Set[str]] = None,
    ) -> None:
        self.adapter_registry = adapter_registry
        self.operation_registry = operation_registry
        self.search_engine = search_engine
        self.allowlist = allowlist or set()

    def list_adapters(
        self,
        category: Optional[str] = None,
        capability: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Dict[str, Any]:
        adapters = self.operation_registry.get_all_adapters()
        filters: Dict[str, str] = {}

        if category and category != "all":
            adapters = [a for a in adapters if a.category == category]
            filters["category"] = category
        if capability:
            wanted = capability.lower()
            adapters = [
                a
                for a in adapters
                if any(wanted in c.lower() for c in getattr(a, "capabilities", []))
            ]
            filters["capability"] = capability
        if country:
            code = country.upper()
            adapters = [
                a
                for a in adapters
                if code in getattr(a, "supported_countries", [])
                or "GLOBAL" in getattr(a, "supported_countries", [])
            ]
            filters["country"] = country

        entries = []
        for adapter in adapters:
            entry = adapter.to_dict()
            operations = self.operation_registry.get_adapter_operations(adapter.id)
            entry["tool_categories"] = dict(Counter(op.category or "general" for op in operations))
            entry["common_operations"] = self.search_engine.common_operations(adapter.id, limit=3)
            entries.append(entry)

        return {
            "total": len(entries),
            "filters_applied": filters or None,
            "adapters": entries,
            "categories": sorted({a.category for a in self.operation_registry.get_all_adapters()}),
        }

    def list_tools(
        self,
        adapter: str,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Dict[str, Any]:
        if not adapter:
            return {"error": {"code": "ADAPTER_REQUIRED", "message": "adapter parameter is required"}}

        meta = self.operation_registry.get_adapter(adapter)
        if meta is None:
            available = [a.id for a in self.operation_registry.get_all_adapters()]
            return {
                "error": {
                    "code": "ADAPTER_NOT_FOUND",
                    "message": f"Adapter '{adapter}' not found",
                    "available_adapters": available[:10],
                }
            }

        all_operations = self.operation_registry.get_adapter_operations(adapter)
        operations = all_operations
        if category:
            wanted = category.lower()
            operations = [op for op in operations if wanted in op.category.lower()]
        if search:
            needle = search.lower()
            operations = [
                op
                for op in operations
                if needle in f"{op.name} {op.description} {' '.join(op.tags)}".lower()
            ]

        page = operations[offset : offset + limit]
        return {
            "adapter": adapter,
            "adapter_info": {
                "name": meta.name,
                "description": meta.description,
                "category": meta.category,
                "auth_type": getattr(meta, "auth_type", None),
                "is_mock": getattr(meta, "is_mock", False),
            },
            "total_tools": len(operations),
            "returned": len(page),
            "offset": offset,
            "limit": limit,
            "categories": list(dict.fromkeys(op.category for op in all_operations)),
            "tools": [self._tool_summary(op) for op in page],
        }

    def intent(
        self,
        query: str,
        adapter: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
        limit: int = 3,
    ) -> Dict[str, Any]:
        if not query:
            return {"error": {"code": "QUERY_REQUIRED", "message": "query is required"}}
        return self.search_engine.search(query, adapter=adapter, context=context, limit=limit)

    async def execute(
        self,
        tool_id: Any,
        params: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
        context: ContextLike = None,
    ) -> Dict[str, Any]:
        options = options or {}
        params = dict(params or {})

        if not tool_id or not isinstance(tool_id, str):
            return _failure("INVALID_TOOL_ID", "tool_id is required")
        split = split_tool_id(tool_id)
        if split is None:
            return _failure(
                "INVALID_TOOL_ID_FORMAT",
                "tool_id must be in 'adapter:tool' format",
                example="paystack:initialize-transaction",
            )

        adapter_id, tool_name = split
        canonical_id = tool_id
        resolved = self.adapter_registry.resolve_tool(tool_id)
        if resolved:
            canonical_id = resolved.canonical_id
            adapter_id = resolved.adapter_id
            tool_name = resolved.tool.get("name") or tool_name

        if self.allowlist and canonical_id not in self.allowlist:
            return _failure("TOOL_NOT_ALLOWED", f"Tool '{canonical_id}' is not allowlisted")

        operation = self.operation_registry.get_operation(canonical_id)
        risk_level = operation.risk_level if operation else "high"

        if risk_level == "high" and not options.get("idempotency_key"):
            return _failure(
                "IDEMPOTENCY_REQUIRED",
                "This operation modifies financial data. Provide options.idempotency_key.",
                risk_level="high",
            )

        if any(word in tool_name.lower() for word in _DESTRUCTIVE) and not options.get("confirmed"):
            return _failure(
                "CONFIRMATION_REQUIRED",
                "This operation is destructive and cannot be undone.",
            )

        if operation and operation.input_schema:
            error = self._validate_params(params, operation)
            if error:
                return {"success": False, "error": error}

        requested = {"requested_tool_id": tool_id} if canonical_id != tool_id else {}
        if options.get("dry_run"):
            return {
                "success": True,
                "dry_run": True,
                "tool_id": canonical_id,
                **requested,
                "params": params,
                "validation": "passed",
                "operation_meta": {"adapter": adapter_id, "tool": tool_name, "risk_level": risk_level},
            }

        started = time.monotonic()
        try:
            data = await self.adapter_registry.call_tool(canonical_id, params, context)
        except GatewayError as exc:
            logger.warning("Execution failed tool=%s code=%s: %s", canonical_id, exc.code, exc.message)
            return {
                **_failure(exc.code, exc.message, adapter=adapter_id, tool=tool_name),
                "tool_id": canonical_id,
                **requested,
                "execution_time_ms": int((time.monotonic() - started) * 1000),
            }
        except Exception as exc:
            logger.exception("Execution raised tool=%s", canonical_id)
            return {
                **_failure(
                    getattr(exc, "code", None) or "EXECUTION_FAILED",
                    str(exc) or exc.__class__.__name__,
                    adapter=adapter_id,
                    tool=tool_name,
                ),
                "tool_id": canonical_id,
                **requested,
                "execution_time_ms": int((time.monotonic() - started) * 1000),
            }

        return {
            "success": True,
            "tool_id": canonical_id,
            **requested,
            "execution_time_ms": int((time.monotonic() - started) * 1000),
            "data": data,
            "meta": {
                "adapter": adapter_id,
                "tool": tool_name,
                "request_id": f"req_{uuid.uuid4().hex[:12]}",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "operation": {
                    "risk_level": risk_level,
                    "idempotent": bool(options.get("idempotency_key")),
                    "category": operation.category if operation else "general",
                },
            },
        }

    def _validate_params(
        self, params: Mapping[str, Any], operation: Operation
    ) -> Optional[Dict[str, Any]]:
        for required in operation.required_params:
            if required not in params:
                return {
                    "code": "MISSING_REQUIRED_PARAM",
                    "message": f"Missing required parameter: {required}",
                    "required_params": operation.required_params,
                }

        properties = (operation.input_schema or {}).get("properties") or {}
        for key, value in params.items():
            if key in properties:
                error = _type_error(key, value, properties[key])
                if error:
                    return error
        return None

    def _tool_summary(self, op: Operation) -> Dict[str, Any]:
        return {
            "tool_id": op.tool_id,
            "name": op.name,
            "description": op.description,
            "category": op.category,
            "method": op.method,
            "risk_level": op.risk_level,
            "required_params": op.required_params,
            "optional_param_count": len(op.optional_params),
            "is_mock": op.is_mock,
            "tags": op.tags[:5],
        }
