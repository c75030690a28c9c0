"""Internal models for adapters, operations and execution context."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union


ToolSpec = Dict[str, Any]


@dataclass
class ExecutionContext:
    headers: Dict[str, Any] = field(default_factory=dict)
    authorization: Optional[str] = None
    api_key: Optional[str] = None
    project_scope: Optional[str] = None
    request_id: Optional[str] = None
    session_id: Optional[str] = None

    @classmethod
    def from_value(
        cls, value: Union["ExecutionContext", Mapping[str, Any], None]
    ) -> "ExecutionContext":
        if value is None:
            return cls()
        if isinstance(value, ExecutionContext):
            return value
        headers = value.get("headers")
        return cls(
            headers=dict(headers) if isinstance(headers, Mapping) else {},
            authorization=value.get("authorization"),
            api_key=value.get("api_key") or value.get("apiKey"),
            project_scope=value.get("project_scope") or value.get("projectScope"),
            request_id=value.get("request_id") or value.get("requestId"),
            session_id=value.get("session_id") or value.get("sessionId"),
        )

    @classmethod
    def from_headers(cls, headers: Mapping[str, Any]) -> "ExecutionContext":
        lowered = {str(key).lower(): value for key, value in headers.items()}
        return cls(
            headers=dict(headers),
            authorization=lowered.get("authorization"),
            api_key=lowered.get("x-api-key"),
            project_scope=lowered.get("x-project-scope"),
            request_id=lowered.get("x-request-id"),
            session_id=lowered.get("x-session-id"),
        )


@dataclass(frozen=True)
class ResolvedTool:
    canonical_id: str
    adapter_id: str
    tool: ToolSpec


@dataclass
class Operation:
    tool_id: str
    adapter: str
    tool: str
    name: str
    description: str
    tags: List[str]
    method: str
    risk_level: str
    category: str
    is_mock: bool
    input_schema: Optional[Dict[str, Any]] = None
    required_params: List[str] = field(default_factory=list)
    optional_params: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AdapterInfo:
    id: str
    name: str
    description: str
    category: str
    capabilities: List[str]
    supported_countries: List[str]
    supported_currencies: List[str]
    tool_count: int
    auth_type: str
    status: str = "operational"
    is_mock: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ServiceInfo:
    id: str
    name: str
    description: str
    category: str
    base_url: str
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
