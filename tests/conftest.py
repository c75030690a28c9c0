"""Shared fakes for gateway tests."""

from typing import Any, Dict, List, Optional

import pytest

from vendor_gateway.models import ExecutionContext


class RecordingAdapter:
    """Executable adapter taking ``(tool_name, args, context)``."""

    def __init__(self, id: str, tools: List[Dict[str, Any]], category: Optional[str] = None) -> None:
        self.id = id
        self.tools = tools
        self.category = category
        self.calls: List[tuple] = []

    async def call_tool(self, tool_name: str, args: Dict[str, Any], context: ExecutionContext) -> Any:
        self.calls.append((tool_name, args, context))
        return {"adapter": self.id, "tool": tool_name, "args": args}


class FailingAdapter(RecordingAdapter):
    """Executable adapter whose vendor client raises a plain exception."""

    async def call_tool(self, tool_name: str, args: Dict[str, Any], context: ExecutionContext) -> Any:
        self.calls.append((tool_name, args, context))
        raise RuntimeError("vendor blew up")


class LegacyAdapter:
    """Executable adapter taking ``(tool_name, {"data", "headers"})``."""

    call_convention = "legacy"

    def __init__(self, id: str, tools: List[Dict[str, Any]]) -> None:
        self.id = id
        self.tools = tools
        self.calls: List[tuple] = []

    def call_tool(self, tool_name: str, payload: Dict[str, Any]) -> Any:
        self.calls.append((tool_name, payload))
        return {"ok": True}


def tool(name: str, description: str = "", **extra: Any) -> Dict[str, Any]:
    return {"name": name, "description": description, **extra}


@pytest.fixture
def stripe_adapter() -> RecordingAdapter:
    return RecordingAdapter(
        "stripe",
        [
            tool(
                "create_customer",
                "Create a customer",
                input_schema={
                    "type": "object",
                    "properties": {"email": {"type": "string"}, "name": {"type": "string"}},
                    "required": ["email"],
                },
            ),
            tool("list_customers"),
            tool("delete_customer"),
        ],
    )


@pytest.fixture
def paystack_adapter() -> RecordingAdapter:
    return RecordingAdapter(
        "paystack",
        [
            tool("initialize-transaction"),
            tool("verify-transaction"),
            tool("create-customer"),
            tool("charge_authorization"),
            tool("list-banks"),
        ],
    )


@pytest.fixture
def flutterwave_adapter() -> RecordingAdapter:
    return RecordingAdapter(
        "flutterwave-v3",
        [tool("initiate-payment"), tool("verify-payment")],
    )
