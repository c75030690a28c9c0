"""Exceptions raised by the gateway core."""

from __future__ import annotations

from typing import Any, Dict, Optional


class GatewayError(Exception):
    status: int = 500
    code: str = "GATEWAY_ERROR"

    def __init__(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.meta: Dict[str, Any] = meta or {}


class ToolNotFound(GatewayError):
    status = 404
    code = "TOOL_NOT_FOUND"

    def __init__(self, tool_id: Any) -> None:
        super().__init__(f"Tool not found: {tool_id}", {"tool_id": tool_id})
        self.tool_id = tool_id


class AdapterNotFound(GatewayError):
    status = 500
    code = "ADAPTER_NOT_FOUND"

    def __init__(self, adapter_id: str) -> None:
        super().__init__(f"Adapter not found: {adapter_id}", {"adapter_id": adapter_id})
        self.adapter_id = adapter_id


class AdapterNotExecutable(GatewayError):
    status = 501
    code = "ADAPTER_NOT_EXECUTABLE"

    def __init__(self, adapter_id: str) -> None:
        super().__init__(
            f"Adapter '{adapter_id}' is not executable (mock)", {"adapter_id": adapter_id}
        )
        self.adapter_id = adapter_id


class AdapterExecutionError(GatewayError):
    status = 502
    code = "VENDOR_CALL_FAILED"


class UnknownCategory(GatewayError):
    status = 404
    code = "UNKNOWN_CATEGORY"


class UnknownOperation(GatewayError):
    status = 404
    code = "UNKNOWN_OPERATION"


class InputValidationError(GatewayError):
    status = 400
    code = "VALIDATION_ERROR"


class VendorUnsupported(GatewayError):
    status = 400
    code = "VENDOR_UNSUPPORTED"


class NoVendorsAvailable(GatewayError):
    status = 503
    code = "NO_VENDORS"


class OperationNotSupported(GatewayError):
    status = 501
    code = "OPERATION_NOT_SUPPORTED"


class AbstractionTargetMissing(GatewayError):
    status = 501
    code = "TOOL_NOT_FOUND"


class RegistryNotReady(GatewayError):
    status = 503
    code = "ADAPTER_REGISTRY_NOT_READY"


class AdapterRegistrationError(ValueError):
    pass
