"""Vendor abstraction layer.

Client code talks to a (category, operation) contract; the layer picks a
vendor, shapes the input for that vendor's tool, calls it through the
adapter registry and returns one normalized envelope.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from .abstractions import Abstraction, default_abstractions
from .adapter_registry import AdapterRegistry, ContextLike
from .errors import (
    AbstractionTargetMissing,
    NoVendorsAvailable,
    OperationNotSupported,
    RegistryNotReady,
    ToolNotFound,
    UnknownCategory,
    UnknownOperation,
    VendorUnsupported,
)
from .logging import redact_payload
from .schemas import FieldSpec, build_input_model, validate_input


logger = logging.getLogger(__name__)


class VendorAbstractionLayer:
    def __init__(
        self,
        adapter_registry: Optional[AdapterRegistry] = None,
        get_adapter_registry: Optional[Callable[[], Optional[AdapterRegistry]]] = None,
        abstractions: Optional[Iterable[Abstraction]] = None,
        strict_vendor: bool = False,
    ) -> None:
        self.adapter_registry = adapter_registry
        self.get_adapter_registry = get_adapter_registry
        self.strict_vendor = strict_vendor
        self._abstractions: Dict[str, Abstraction] = {}
        self._models: Dict[Tuple[str, str], type[BaseModel]] = {}
        for abstraction in abstractions if abstractions is not None else default_abstractions():
            self.register_abstraction(abstraction)

    def register_abstraction(self, abstraction: Abstraction) -> None:
        self._abstractions[abstraction.category] = abstraction
        for key in [key for key in self._models if key[0] == abstraction.category]:
            del self._models[key]

    def registry(self) -> Optional[AdapterRegistry]:
        if self.get_adapter_registry:
            return self.get_adapter_registry()
        return self.adapter_registry

    async def execute_abstracted_call(
        self,
        category: str,
        operation: str,
        payload: Optional[Mapping[str, Any]] = None,
        vendor_preference: Optional[str] = None,
        context: ContextLike = None,
    ) -> Dict[str, Any]:
        abstraction = self._abstractions.get(category)
        if not abstraction:
            raise UnknownCategory(f"Unknown category: {category}", {"category": category})

        schema = abstraction.operations.get(operation)
        if schema is None:
            raise UnknownOperation(
                f"Unknown operation: {operation} in category: {category}",
                {"category": category, "operation": operation},
            )

        validated = validate_input(self._input_model(category, operation), schema, payload)
        vendor = self._select_vendor(abstraction, vendor_preference)

        mapping = abstraction.vendors[vendor].mappings.get(operation)
        if not mapping:
            raise OperationNotSupported(
                f"Operation {operation} not supported by vendor: {vendor}",
                {"category": category, "operation": operation, "vendor": vendor},
            )

        vendor_input = mapping.transform(dict(validated))
        adapter_id = abstraction.vendors[vendor].adapter
        result = await self._execute_vendor_call(adapter_id, mapping.tool, vendor_input, context)

        return {
            "success": True,
            "data": result,
            "metadata": {
                "category": category,
                "operation": operation,
                "vendor": vendor,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "abstracted": True,
            },
        }

    def _select_vendor(self, abstraction: Abstraction, preference: Optional[str]) -> str:
        if preference and preference in abstraction.vendors:
            return preference

        default = abstraction.resolve_default_vendor()
        if not default:
            raise NoVendorsAvailable(
                f"No vendors available for category: {abstraction.category}",
                {"category": abstraction.category},
            )

        if preference:
            if self.strict_vendor:
                raise VendorUnsupported(
                    f"Vendor {preference} is not available for category: {abstraction.category}",
                    {"category": abstraction.category, "vendor": preference},
                )
            logger.warning(
                "Vendor %s not registered for category=%s; using default %s",
                preference,
                abstraction.category,
                default,
            )
        return default

    async def _execute_vendor_call(
        self, adapter_id: str, tool: str, payload: Dict[str, Any], context: ContextLike
    ) -> Any:
        registry = self.registry()
        if registry is None:
            raise RegistryNotReady(
                "Adapter registry not available yet (gateway still initializing).",
                {"adapter_id": adapter_id, "tool": tool},
            )

        tool_id = f"{adapter_id}:{tool}"
        logger.debug("Abstracted call tool=%s payload=%s", tool_id, redact_payload(payload))
        try:
            return await registry.call_tool(tool_id, payload, context if context is not None else {})
        except ToolNotFound as exc:
            raise AbstractionTargetMissing(
                f"Tool not found for abstraction mapping: {tool_id}",
                {"adapter_id": adapter_id, "tool": tool},
            ) from exc

    def _input_model(self, category: str, operation: str) -> type[BaseModel]:
        key = (category, operation)
        if key not in self._models:
            schema = self._abstractions[category].operations[operation]
            self._models[key] = build_input_model(f"{category}_{operation}", schema)
        return self._models[key]

    # Discovery

    def get_available_categories(self) -> List[str]:
        return list(self._abstractions)

    def get_category_operations(self, category: str) -> List[str]:
        abstraction = self._abstractions.get(category)
        return list(abstraction.operations) if abstraction else []

    def get_category_vendors(self, category: str) -> List[str]:
        abstraction = self._abstractions.get(category)
        return abstraction.vendor_ids if abstraction else []

    def get_default_vendor(self, category: str) -> Optional[str]:
        abstraction = self._abstractions.get(category)
        return abstraction.resolve_default_vendor() if abstraction else None

    def get_client_schema(self, category: str, operation: str) -> Optional[Dict[str, FieldSpec]]:
        abstraction = self._abstractions.get(category)
        if not abstraction or operation not in abstraction.operations:
            return None
        return abstraction.operations[operation]
