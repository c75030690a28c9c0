"""Tests for adapter catalog and OpenAPI service loading."""

import json
from pathlib import Path

import httpx
import pytest

from vendor_gateway.catalog import (
    ServiceCatalogLoader,
    attach_remote_specs,
    load_adapter_catalog,
    tools_from_openapi,
)


OPENAPI = {
    "openapi": "3.0.0",
    "info": {"title": "Acme", "version": "1.2.0"},
    "paths": {
        "/customers/{id}": {
            "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
            "get": {"operationId": "getCustomer", "summary": "Fetch a customer"},
            "delete": {"description": "Remove a customer"},
        },
        "/customers": {
            "post": {
                "operationId": "createCustomer",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "properties": {"email": {"type": "string"}, "name": {"type": "string"}},
                                "required": ["email"],
                            }
                        }
                    }
                },
            }
        },
    },
}


class TestToolsFromOpenapi:
    def test_operations_become_tools(self) -> None:
        tools = {t["name"]: t for t in tools_from_openapi(OPENAPI)}

        assert set(tools) == {"getCustomer", "delete_customers_id", "createCustomer"}
        assert tools["getCustomer"]["metadata"] == {"method": "GET", "path": "/customers/{id}"}
        assert tools["getCustomer"]["description"] == "Fetch a customer"
        assert tools["getCustomer"]["input_schema"]["required"] == ["id"]

    def test_request_body_properties_are_merged(self) -> None:
        tools = {t["name"]: t for t in tools_from_openapi(OPENAPI)}
        schema = tools["createCustomer"]["input_schema"]

        assert set(schema["properties"]) == {"email", "name"}
        assert schema["required"] == ["email"]


class TestLoadAdapterCatalog:
    def test_adapters_and_mocks(self, tmp_path: Path) -> None:
        path = tmp_path / "adapters.json"
        path.write_text(
            json.dumps(
                {
                    "adapters": [
                        {
                            "id": "paystack",
                            "base_url": "https://api.paystack.co",
                            "tools": [{"name": "verify-transaction", "metadata": {"method": "GET", "path": "/transaction/verify/{reference}"}}],
                        },
                        {"id": "acme", "base_url": "https://acme.example.com", "openapi": OPENAPI},
                        {"id": "no-url"},
                    ],
                    "mocks": [{"id": "ngrok-examples", "tools": 19}],
                }
            )
        )

        catalog = load_adapter_catalog(str(path), timeout_seconds=5, max_retries=2)

        assert [a.id for a in catalog.adapters] == ["paystack", "acme"]
        assert len(catalog.adapters[1].tools) == 3
        assert catalog.adapters[0].timeout_seconds == 5
        assert catalog.adapters[0].max_retries == 2
        assert catalog.mocks == [{"id": "ngrok-examples", "tools": 19}]


class TestServiceCatalogLoader:
    def test_load_directory(self, tmp_path: Path) -> None:
        (tmp_path / "billing.json").write_text(json.dumps({"info": {"title": "Billing"}}))
        (tmp_path / "broken.json").write_text("{not json")
        (tmp_path / "notes.txt").write_text("ignored")

        services = ServiceCatalogLoader().load_directory(str(tmp_path))

        assert services == {"billing": {"info": {"title": "Billing"}}}

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert ServiceCatalogLoader().load_directory(str(tmp_path / "missing")) == {}

    @pytest.mark.asyncio
    async def test_load_spec_is_cached(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=OPENAPI)

        loader = ServiceCatalogLoader(transport=httpx.MockTransport(handler))

        first = await loader.load_spec("https://acme.example.com/openapi.json")
        second = await loader.load_spec("https://acme.example.com/openapi.json")

        assert first == second == OPENAPI
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_load_spec_failure(self) -> None:
        loader = ServiceCatalogLoader(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        assert await loader.load_spec("https://acme.example.com/openapi.json") is None


class TestRemoteSpecs:
    @pytest.mark.asyncio
    async def test_openapi_url_tools_are_attached(self, tmp_path: Path) -> None:
        path = tmp_path / "adapters.json"
        path.write_text(
            json.dumps(
                {
                    "adapters": [
                        {
                            "id": "acme",
                            "base_url": "https://acme.example.com",
                            "tools": [{"name": "ping"}],
                            "openapi_url": "https://acme.example.com/openapi.json",
                        },
                        {
                            "id": "gone",
                            "base_url": "https://gone.example.com",
                            "openapi_url": "https://gone.example.com/openapi.json",
                        },
                    ]
                }
            )
        )

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "acme.example.com":
                return httpx.Response(200, json=OPENAPI)
            raise httpx.ConnectError("unreachable", request=request)

        catalog = load_adapter_catalog(str(path))
        await attach_remote_specs(catalog, ServiceCatalogLoader(transport=httpx.MockTransport(handler)))

        acme, gone = catalog.adapters
        assert catalog.openapi_urls == {
            "acme": "https://acme.example.com/openapi.json",
            "gone": "https://gone.example.com/openapi.json",
        }
        assert [t["name"] for t in acme.tools] == ["ping", "getCustomer", "delete_customers_id", "createCustomer"]
        assert gone.tools == []
