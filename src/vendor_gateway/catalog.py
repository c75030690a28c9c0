"""Adapter catalog and OpenAPI service loading."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from .http_adapter import HttpToolAdapter
from .models import ToolSpec


logger = logging.getLogger(__name__)

_HTTP_METHODS = {"get", "post", "put", "patch", "delete"}


@dataclass
class AdapterCatalog:
    adapters: List[HttpToolAdapter] = field(default_factory=list)
    mocks: List[Dict[str, Any]] = field(default_factory=list)
    openapi_urls: Dict[str, str] = field(default_factory=dict)


def load_adapter_catalog(
    path: str, timeout_seconds: float = 30, max_retries: int = 0
) -> AdapterCatalog:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    catalog = AdapterCatalog(mocks=[dict(m) for m in raw.get("mocks") or []])

    for entry in raw.get("adapters") or []:
        if not entry.get("id") or not entry.get("base_url"):
            logger.warning("Skipping adapter entry without id/base_url: %s", entry.get("id"))
            continue
        tools = list(entry.get("tools") or [])
        if entry.get("openapi"):
            tools.extend(tools_from_openapi(entry["openapi"]))
        if entry.get("openapi_url"):
            catalog.openapi_urls[entry["id"]] = entry["openapi_url"]
        catalog.adapters.append(
            HttpToolAdapter(
                id=entry["id"],
                base_url=entry["base_url"],
                tools=tools,
                name=entry.get("name"),
                description=entry.get("description") or "",
                auth_type=entry.get("auth_type") or "bearer",
                category=entry.get("category"),
                supported_countries=entry.get("supported_countries"),
                supported_currencies=entry.get("supported_currencies"),
                timeout_seconds=timeout_seconds,
                max_retries=max_retries,
            )
        )

    logger.info(
        "Loaded adapter catalog %s: %s adapters, %s mocks",
        path,
        len(catalog.adapters),
        len(catalog.mocks),
    )
    return catalog


async def attach_remote_specs(catalog: AdapterCatalog, loader: ServiceCatalogLoader) -> None:
    """Extend catalog adapters with tools from their ``openapi_url`` specs."""
    adapters = {adapter.id: adapter for adapter in catalog.adapters}
    for adapter_id, url in catalog.openapi_urls.items():
        try:
            spec = await loader.load_spec(url)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to load OpenAPI spec for %s from %s: %s", adapter_id, url, exc)
            continue
        if spec is None:
            continue
        tools = tools_from_openapi(spec)
        adapters[adapter_id].tools.extend(tools)
        logger.info("Loaded %s tools for %s from %s", len(tools), adapter_id, url)


def tools_from_openapi(spec: Mapping[str, Any]) -> List[ToolSpec]:
    tools: List[ToolSpec] = []
    for path, methods in (spec.get("paths") or {}).items():
        shared_parameters = (methods or {}).get("parameters") or []
        for method, operation in (methods or {}).items():
            if method.lower() not in _HTTP_METHODS:
                continue
            operation_id = operation.get("operationId") or _fallback_operation_id(method, path)
            tools.append(
                {
                    "name": operation_id,
                    "description": operation.get("description") or operation.get("summary") or "",
                    "input_schema": _input_schema(operation, shared_parameters),
                    "metadata": {"method": method.upper(), "path": path},
                }
            )
    return tools


def _input_schema(
    operation: Mapping[str, Any], shared_parameters: List[Mapping[str, Any]]
) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for parameter in [*shared_parameters, *(operation.get("parameters") or [])]:
        name = parameter.get("name")
        if not name:
            continue
        prop = dict(parameter.get("schema") or {"type": "string"})
        if parameter.get("description"):
            prop["description"] = parameter["description"]
        properties[name] = prop
        if parameter.get("required"):
            required.append(name)

    content = (operation.get("requestBody") or {}).get("content") or {}
    body = (content.get("application/json") or {}).get("schema") or {}
    for name, prop in (body.get("properties") or {}).items():
        properties.setdefault(name, prop)
    for name in body.get("required") or []:
        if name not in required:
            required.append(name)

    return {"type": "object", "properties": properties, "required": required}


def _fallback_operation_id(method: str, path: str) -> str:
    sanitized = path.strip("/").replace("/", "_").replace("{", "").replace("}", "")
    return f"{method.lower()}_{sanitized or 'root'}"


class ServiceCatalogLoader:
    def __init__(
        self,
        cache_seconds: int = 3600,
        timeout_seconds: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cache_seconds = cache_seconds
        self.timeout_seconds = timeout_seconds
        self.transport = transport
        self._cache: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    async def load_spec(self, url: str) -> Optional[Dict[str, Any]]:
        cached = self._cache.get(url)
        if cached and time.time() - cached[0] < self.cache_seconds:
            return cached[1]

        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
            response = await client.get(url)
            if response.status_code != 200:
                logger.warning("Failed to fetch OpenAPI spec: %s (%s)", url, response.status_code)
                return None
            data = response.json()

        self._cache[url] = (time.time(), data)
        return data

    def load_directory(self, path: str) -> Dict[str, Dict[str, Any]]:
        services: Dict[str, Dict[str, Any]] = {}
        directory = Path(path)
        if not directory.is_dir():
            logger.warning("Services directory not found: %s", path)
            return services

        for file in sorted(directory.glob("*.json")):
            try:
                services[file.stem] = json.loads(file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Skipping service definition %s: %s", file, exc)
        return services
