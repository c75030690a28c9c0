"""Client-facing HTTP routes for abstracted calls and discovery."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import Settings
from .discovery import GatewayDiscovery
from .errors import GatewayError
from .models import ExecutionContext
from .vendor_abstraction import VendorAbstractionLayer


logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex[:12]}"


def _error_response(
    request: Request, exc: GatewayError, extra: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    body = {
        "success": False,
        "error": exc.message,
        "code": exc.code,
        **(extra or {}),
        "requestId": _request_id(request),
    }
    return JSONResponse(body, status_code=exc.status)


def mount_abstracted_api(app, abstraction: VendorAbstractionLayer, settings: Settings) -> None:  # type: ignore[no-untyped-def]
    async def list_categories(_request: Request) -> JSONResponse:
        categories = [
            {
                "name": category,
                "operations": abstraction.get_category_operations(category),
                "vendors": abstraction.get_category_vendors(category),
            }
            for category in abstraction.get_available_categories()
        ]
        return JSONResponse({"success": True, "categories": categories})

    async def get_category(request: Request) -> JSONResponse:
        category = request.path_params["category"]
        operations = abstraction.get_category_operations(category)
        if not operations:
            return JSONResponse(
                {"success": False, "error": f"Unknown category: {category}"}, status_code=404
            )
        return JSONResponse(
            {
                "success": True,
                "category": category,
                "operations": operations,
                "vendors": abstraction.get_category_vendors(category),
                "schemas": {op: abstraction.get_client_schema(category, op) for op in operations},
            }
        )

    async def get_schema(request: Request) -> JSONResponse:
        category = request.path_params["category"]
        operation = request.path_params["operation"]
        schema = abstraction.get_client_schema(category, operation)
        if schema is None:
            return JSONResponse(
                {"success": False, "error": f"Schema not found for {category}/{operation}"},
                status_code=404,
            )
        return JSONResponse(
            {"success": True, "category": category, "operation": operation, "schema": schema}
        )

    async def abstracted_call(request: Request) -> JSONResponse:
        category = request.path_params["category"]
        operation = request.path_params["operation"]
        request_id = _request_id(request)
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return JSONResponse(
                {
                    "success": False,
                    "error": "Request body must be a JSON object",
                    "code": "VALIDATION_ERROR",
                    "requestId": request_id,
                },
                status_code=400,
            )

        vendor = body.pop("vendor", None)
        context = ExecutionContext.from_headers(request.headers)
        try:
            result = await abstraction.execute_abstracted_call(
                category, operation, body, vendor, context
            )
        except GatewayError as exc:
            logger.info("Abstracted call failed %s/%s: %s", category, operation, exc.message)
            return _error_response(request, exc, {"category": category, "operation": operation})
        except Exception as exc:
            logger.exception("Vendor call raised for %s/%s", category, operation)
            return JSONResponse(
                {
                    "success": False,
                    "error": str(exc) or exc.__class__.__name__,
                    "code": getattr(exc, "code", None) or "VENDOR_CALL_FAILED",
                    "category": category,
                    "operation": operation,
                    "requestId": request_id,
                },
                status_code=400,
            )

        metadata = dict(result["metadata"])
        if not settings.abstraction_expose_vendor:
            metadata.pop("vendor", None)
        metadata["requestId"] = request_id
        metadata["timestamp"] = datetime.now(timezone.utc).isoformat()
        return JSONResponse(
            {
                "success": True,
                "category": category,
                "operation": operation,
                "data": result["data"],
                "metadata": metadata,
            }
        )

    app.add_route("/api/v1/categories", list_categories, methods=["GET"])
    app.add_route("/api/v1/categories/{category}", get_category, methods=["GET"])
    app.add_route(
        "/api/v1/categories/{category}/schema/{operation}", get_schema, methods=["GET"]
    )
    app.add_route("/api/v1/{category}/{operation}", abstracted_call, methods=["POST"])


def mount_discovery_api(app, discovery: GatewayDiscovery) -> None:  # type: ignore[no-untyped-def]
    async def list_adapters(request: Request) -> JSONResponse:
        params = request.query_params
        return JSONResponse(
            discovery.list_adapters(
                category=params.get("category"),
                capability=params.get("capability"),
                country=params.get("country"),
            )
        )

    async def list_tools(request: Request) -> JSONResponse:
        params = request.query_params
        try:
            limit = int(params.get("limit", 20))
            offset = int(params.get("offset", 0))
        except ValueError:
            return JSONResponse({"error": "limit and offset must be integers"}, status_code=400)
        payload = discovery.list_tools(
            request.path_params["adapter_id"],
            category=params.get("category"),
            search=params.get("search"),
            limit=limit,
            offset=offset,
        )
        status = 404 if payload.get("error", {}).get("code") == "ADAPTER_NOT_FOUND" else 200
        return JSONResponse(payload, status_code=status)

    async def search(request: Request) -> JSONResponse:
        params = request.query_params
        query = params.get("q")
        if not query:
            return JSONResponse({"error": "Missing query parameter: q"}, status_code=400)
        context = {key: params[key] for key in ("country", "currency", "use_case") if key in params}
        return JSONResponse(
            discovery.intent(query, adapter=params.get("adapter"), context=context or None)
        )

    app.add_route("/api/v1/adapters", list_adapters, methods=["GET"])
    app.add_route("/api/v1/adapters/{adapter_id}/tools", list_tools, methods=["GET"])
    app.add_route("/api/v1/search", search, methods=["GET"])
