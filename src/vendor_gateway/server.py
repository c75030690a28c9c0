"""MCP server setup for the Vendor Gateway."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastmcp import FastMCP
from fastmcp.server.dependencies import get_http_headers
from starlette.responses import JSONResponse

from .adapter_registry import AdapterRegistry
from .abstractions import default_abstractions
from .api import mount_abstracted_api, mount_discovery_api
from .auth import AuthBridge
from .catalog import ServiceCatalogLoader, attach_remote_specs, load_adapter_catalog
from .config import Settings
from .discovery import GatewayDiscovery
from .models import ExecutionContext
from .operation_registry import OperationRegistry
from .search import SearchEngine
from .vendor_abstraction import VendorAbstractionLayer

logger = logging.getLogger(__name__)


@dataclass
class Gateway:
    adapter_registry: AdapterRegistry
    operation_registry: OperationRegistry
    search_engine: SearchEngine
    discovery: GatewayDiscovery
    abstraction: VendorAbstractionLayer


async def build_gateway(settings: Settings) -> Gateway:
    adapter_registry = AdapterRegistry()
    loader = ServiceCatalogLoader(
        cache_seconds=settings.gateway_openapi_cache_seconds,
        timeout_seconds=settings.gateway_http_timeout_seconds,
    )

    if settings.gateway_adapters_path:
        catalog = load_adapter_catalog(
            settings.gateway_adapters_path,
            timeout_seconds=settings.gateway_http_timeout_seconds,
            max_retries=settings.gateway_http_max_retries,
        )
        await attach_remote_specs(catalog, loader)
        for adapter in catalog.adapters:
            await adapter_registry.register(adapter)
        for entry in catalog.mocks:
            adapter_registry.register_mock(entry)

    services: Dict[str, Dict[str, Any]] = {}
    if settings.gateway_services_dir:
        services = loader.load_directory(settings.gateway_services_dir)

    operation_registry = OperationRegistry()
    await operation_registry.build_from_adapters(adapter_registry.to_adapters_map(), services)

    search_engine = SearchEngine(operation_registry, settings.search_min_confidence)
    discovery = GatewayDiscovery(
        adapter_registry, operation_registry, search_engine, settings.tool_allowlist()
    )
    abstraction = VendorAbstractionLayer(
        adapter_registry=adapter_registry,
        abstractions=default_abstractions(settings.callback_url),
        strict_vendor=settings.abstraction_strict_vendor,
    )
    logger.info("Gateway ready: %s", adapter_registry.get_stats())
    return Gateway(adapter_registry, operation_registry, search_engine, discovery, abstraction)


async def build_server(settings: Settings) -> tuple[FastMCP, object | None]:
    gateway = await build_gateway(settings)

    mcp = FastMCP(settings.service_name, instructions=_instructions())
    _register_meta_tools(mcp, gateway.discovery)

    app = _get_http_app(mcp, settings)
    _attach_auth(app, settings)
    _attach_healthcheck(app, gateway)
    if app:
        mount_abstracted_api(app, gateway.abstraction, settings)  # type: ignore[arg-type]
        mount_discovery_api(app, gateway.discovery)  # type: ignore[arg-type]

    return mcp, app


def _register_meta_tools(mcp: FastMCP, discovery: GatewayDiscovery) -> None:
    async def gateway_intent(
        query: str,
        adapter: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        limit: int = 3,
    ) -> Dict[str, Any]:
        """Find the operations that match a task described in plain language."""
        return discovery.intent(query, adapter=adapter, context=context, limit=limit)

    async def gateway_execute(
        tool_id: str,
        params: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Execute an ``adapter:tool`` operation with risk policies applied."""
        context = ExecutionContext.from_headers(get_http_headers(include_all=True))
        return await discovery.execute(tool_id, params, options, context)

    async def gateway_adapters(
        category: Optional[str] = None,
        capability: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Dict[str, Any]:
        """List adapters, optionally filtered by category, capability or country."""
        return discovery.list_adapters(category=category, capability=capability, country=country)

    async def gateway_tools(
        adapter: str,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Dict[str, Any]:
        """List the tools of one adapter."""
        return discovery.list_tools(adapter, category=category, search=search, limit=limit, offset=offset)

    for handler in (gateway_intent, gateway_execute, gateway_adapters, gateway_tools):
        mcp.tool(name=handler.__name__)(handler)
        logger.info("Registered tool: %s", handler.__name__)


def _attach_auth(app, settings: Settings) -> None:  # type: ignore[no-untyped-def]
    if not app:
        logger.warning("FastMCP app not available; auth middleware disabled")
        return

    bridge = AuthBridge(
        auth_api_url=settings.auth_api_url,
        jwt_secret=settings.auth_jwt_secret,
        project_scope=settings.auth_project_scope,
        cache_seconds=settings.auth_cache_seconds,
    )

    @app.middleware("http")
    async def auth_middleware(request, call_next):  # type: ignore[no-untyped-def]
        if request.method == "OPTIONS":
            return await call_next(request)
        if request.url.path.endswith("/health"):
            return await call_next(request)

        if not settings.gateway_auth_token and not bridge.enabled:
            request.state.auth = {"type": "anonymous"}
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        token = auth_header.replace("Bearer", "").strip()

        if settings.gateway_auth_token and token == settings.gateway_auth_token:
            request.state.auth = {"type": "service"}
            return await call_next(request)

        if bridge.enabled:
            result = await bridge.validate(request.headers)
            if result.authenticated:
                request.state.auth = result
                return await call_next(request)
            logger.warning("Authentication failed (%s): %s", result.method, result.error)

        return JSONResponse(
            {"error": "Authentication required", "code": "AUTH_REQUIRED"}, status_code=401
        )


def _attach_healthcheck(app, gateway: Gateway) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return

    async def healthcheck(_request):  # type: ignore[no-untyped-def]
        return JSONResponse(
            {
                "status": "ok",
                "adapters": gateway.adapter_registry.get_stats(),
                "operations": gateway.operation_registry.get_operation_count(),
                "registry_built_at": gateway.operation_registry.built_at,
            }
        )

    app.add_route("/health", healthcheck, methods=["GET"])


def _instructions() -> str:
    return (
        "Vendor Gateway. Use gateway_intent to find an operation, gateway_tools and "
        "gateway_adapters to browse, and gateway_execute to run an adapter:tool id."
    )


def _get_http_app(mcp: FastMCP, settings: Settings):  # type: ignore[no-untyped-def]
    transport = settings.gateway_transport.lower()
    if transport in {"http"}:
        app = mcp.http_app(transport="http", stateless_http=True, json_response=True)
        _attach_cors(app)
        return app
    if transport in {"streamable-http", "streamablehttp"}:
        app = mcp.http_app(
            transport="streamable-http", stateless_http=True, json_response=True
        )
        _attach_cors(app)
        return app
    if transport in {"sse"}:
        app = mcp.http_app(transport="sse")
        _attach_cors(app)
        return app
    return None


def _attach_cors(app) -> None:  # type: ignore[no-untyped-def]
    from starlette.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
