"""Tests for adapter registration, tool resolution and dispatch."""

import pytest

from conftest import LegacyAdapter, RecordingAdapter, tool
from vendor_gateway.adapter_registry import AdapterRegistry
from vendor_gateway.errors import (
    AdapterNotExecutable,
    AdapterNotFound,
    AdapterRegistrationError,
    ToolNotFound,
)
from vendor_gateway.models import ExecutionContext


class InitAdapter:
    def __init__(self) -> None:
        self.id = "initme"
        self.tools = [tool("ping")]
        self.init_calls = 0

    async def initialize(self) -> None:
        self.init_calls += 1


class BrokenListingAdapter:
    id = "broken"

    def list_tools(self) -> list:
        raise RuntimeError("upstream down")


class TestRegistration:
    @pytest.mark.asyncio
    async def test_register_requires_adapter(self) -> None:
        registry = AdapterRegistry()
        with pytest.raises(AdapterRegistrationError):
            await registry.register(None)

    @pytest.mark.asyncio
    async def test_register_requires_id(self) -> None:
        class Anonymous:
            tools: list = []

        with pytest.raises(AdapterRegistrationError):
            await AdapterRegistry().register(Anonymous())

    @pytest.mark.asyncio
    async def test_explicit_id_is_assigned(self) -> None:
        class Anonymous:
            id = None
            tools = [tool("ping")]

        adapter = await AdapterRegistry().register(Anonymous(), adapter_id="anon")
        assert adapter.id == "anon"

    @pytest.mark.asyncio
    async def test_initialize_runs_once(self) -> None:
        registry = AdapterRegistry()
        adapter = InitAdapter()

        await registry.register(adapter)
        await registry.register(adapter)

        assert adapter.init_calls == 1

    @pytest.mark.asyncio
    async def test_skip_initialize(self) -> None:
        adapter = InitAdapter()
        await AdapterRegistry().register(adapter, skip_initialize=True)
        assert adapter.init_calls == 0

    @pytest.mark.asyncio
    async def test_listing_failure_registers_without_tools(self) -> None:
        registry = AdapterRegistry()
        await registry.register(BrokenListingAdapter())

        assert registry.get_adapter("broken") is not None
        assert registry.get_stats()["indexed_tools"] == 0

    def test_mock_without_id_is_ignored(self) -> None:
        registry = AdapterRegistry()
        assert registry.register_mock({"name": "nameless", "tools": 3}) is None
        assert registry.to_adapters_map() == {}

    def test_mock_accepts_camel_and_snake_keys(self) -> None:
        registry = AdapterRegistry()
        mock = registry.register_mock(
            {"id": "acme", "toolCount": 4, "authType": "oauth2", "supported_countries": ["NG"]}
        )

        assert mock.tools == 4
        assert mock.auth_type == "oauth2"
        assert mock.supported_countries == ["NG"]
        assert mock.is_mock is True

    @pytest.mark.asyncio
    async def test_stats(self, stripe_adapter: RecordingAdapter) -> None:
        registry = AdapterRegistry()
        await registry.register(stripe_adapter)
        registry.register_mock({"id": "ngrok-examples", "tools": 19})

        stats = registry.get_stats()
        assert stats["total_adapters"] == 2
        assert stats["real_adapters"] == 1
        assert stats["mock_adapters"] == 1
        assert stats["indexed_tools"] == 3


class TestResolution:
    @pytest.mark.asyncio
    async def test_canonical_id_resolves(self, stripe_adapter: RecordingAdapter) -> None:
        registry = AdapterRegistry()
        await registry.register(stripe_adapter)

        resolved = registry.resolve_tool("stripe:create-customer")

        assert resolved.canonical_id == "stripe:create-customer"
        assert resolved.adapter_id == "stripe"
        assert resolved.tool["name"] == "create_customer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "spelling",
        ["stripe:create_customer", "STRIPE:CREATE_CUSTOMER", "Stripe:Create-Customer", " stripe : create_customer "],
    )
    async def test_aliases_resolve_to_canonical(self, stripe_adapter: RecordingAdapter, spelling: str) -> None:
        registry = AdapterRegistry()
        await registry.register(stripe_adapter)

        assert registry.resolve_tool(spelling).canonical_id == "stripe:create-customer"

    @pytest.mark.asyncio
    async def test_unknown_ids_do_not_resolve(self, stripe_adapter: RecordingAdapter) -> None:
        registry = AdapterRegistry()
        await registry.register(stripe_adapter)

        assert registry.resolve_tool("stripe:refund") is None
        assert registry.resolve_tool("") is None
        assert registry.resolve_tool(None) is None

    @pytest.mark.asyncio
    async def test_first_registered_tool_wins(self) -> None:
        registry = AdapterRegistry()
        await registry.register(
            RecordingAdapter("dup", [tool("make_thing", "first"), tool("make-thing", "second")])
        )

        assert registry.resolve_tool("dup:make-thing").tool["description"] == "first"


class TestForwardHeaders:
    def test_only_allowlisted_headers_are_forwarded(self) -> None:
        headers = AdapterRegistry().build_forward_headers(
            {
                "headers": {
                    "authorization": "Bearer abc",
                    "x-api-key": "key-1",
                    "Cookie": "session=1",
                    "X-Request-ID": "req-1",
                    "host": "gateway.local",
                }
            }
        )

        assert headers == {
            "Authorization": "Bearer abc",
            "X-API-Key": "key-1",
            "X-Request-ID": "req-1",
        }

    def test_context_shorthand_takes_precedence(self) -> None:
        headers = AdapterRegistry().build_forward_headers(
            {"headers": {"Authorization": "Bearer from-header"}, "authorization": "Bearer from-context"}
        )
        assert headers["Authorization"] == "Bearer from-context"

    def test_camel_case_context_keys(self) -> None:
        headers = AdapterRegistry().build_forward_headers(
            {"apiKey": "k", "projectScope": "scope", "sessionId": "s"}
        )
        assert headers == {"X-API-Key": "k", "X-Project-Scope": "scope", "X-Session-ID": "s"}

    def test_apikey_header_passes_through(self) -> None:
        headers = AdapterRegistry().build_forward_headers({"headers": {"APIKEY": "anon"}})
        assert headers == {"apikey": "anon"}

    def test_empty_context(self) -> None:
        assert AdapterRegistry().build_forward_headers(None) == {}


class TestCallTool:
    @pytest.mark.asyncio
    async def test_unknown_tool(self) -> None:
        with pytest.raises(ToolNotFound) as exc:
            await AdapterRegistry().call_tool("unknown:op")

        assert exc.value.message == "Tool not found: unknown:op"
        assert exc.value.status == 404

    @pytest.mark.asyncio
    async def test_mock_placeholder_is_not_executable(self) -> None:
        registry = AdapterRegistry()
        registry.register_mock({"id": "ngrok-examples", "tools": 19})

        with pytest.raises(AdapterNotExecutable) as exc:
            await registry.call_tool("ngrok-examples:tool-1", {})

        assert str(exc.value) == "Adapter 'ngrok-examples' is not executable (mock)"

    @pytest.mark.asyncio
    async def test_adapter_without_call_tool_is_not_executable(self) -> None:
        class Listing:
            id = "docs"
            tools = [tool("read")]

        registry = AdapterRegistry()
        await registry.register(Listing())

        with pytest.raises(AdapterNotExecutable):
            await registry.call_tool("docs:read")

    @pytest.mark.asyncio
    async def test_missing_adapter(self, stripe_adapter: RecordingAdapter) -> None:
        registry = AdapterRegistry()
        await registry.register(stripe_adapter)
        registry._adapters.pop("stripe")

        with pytest.raises(AdapterNotFound):
            await registry.call_tool("stripe:create-customer")

    @pytest.mark.asyncio
    async def test_context_adapter_receives_forwarded_headers_only(
        self, stripe_adapter: RecordingAdapter
    ) -> None:
        registry = AdapterRegistry()
        await registry.register(stripe_adapter)

        result = await registry.call_tool(
            "stripe:create_customer",
            {"email": "ada@example.com"},
            {"headers": {"Authorization": "Bearer t", "Cookie": "c=1"}, "requestId": "r-9"},
        )

        tool_name, args, context = stripe_adapter.calls[0]
        assert result["tool"] == "create_customer"
        assert tool_name == "create_customer"
        assert args == {"email": "ada@example.com"}
        assert isinstance(context, ExecutionContext)
        assert context.headers == {"Authorization": "Bearer t", "X-Request-ID": "r-9"}
        assert context.request_id == "r-9"

    @pytest.mark.asyncio
    async def test_legacy_adapter_receives_data_and_headers(self) -> None:
        adapter = LegacyAdapter("legacy", [tool("do_thing")])
        registry = AdapterRegistry()
        await registry.register(adapter)

        await registry.call_tool("legacy:do-thing", {"a": 1}, {"apiKey": "k"})

        assert adapter.calls == [("do_thing", {"data": {"a": 1}, "headers": {"X-API-Key": "k"}})]

    @pytest.mark.asyncio
    async def test_legacy_option_overrides_convention(self) -> None:
        class TwoArg:
            id = "two"
            tools = [tool("go")]

            def __init__(self) -> None:
                self.payloads: list = []

            def call_tool(self, name, payload):  # type: ignore[no-untyped-def]
                self.payloads.append(payload)
                return "done"

        adapter = TwoArg()
        registry = AdapterRegistry()
        await registry.register(adapter, legacy=True)

        assert await registry.call_tool("two:go") == "done"
        assert adapter.payloads == [{"data": {}, "headers": {}}]
