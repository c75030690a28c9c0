"""Configuration for the Vendor Gateway."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Set

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    service_name: str = Field(default="vendor-gateway")

    gateway_transport: str = Field(default="streamable-http")
    gateway_host: str = Field(default="0.0.0.0")
    gateway_port: int = Field(default=8000)
    gateway_auth_token: Optional[str] = Field(default=None)
    gateway_log_level: str = Field(default="INFO")

    gateway_adapters_path: Optional[str] = Field(default=None)
    gateway_services_dir: Optional[str] = Field(default=None)

    gateway_http_timeout_seconds: float = Field(default=30)
    gateway_http_max_retries: int = Field(default=0)
    gateway_openapi_cache_seconds: int = Field(default=3600)

    abstraction_expose_vendor: bool = Field(default=False)
    abstraction_strict_vendor: bool = Field(default=False)
    callback_url: Optional[str] = Field(default=None)

    search_min_confidence: float = Field(default=0.3)

    auth_api_url: Optional[str] = Field(default=None)
    auth_jwt_secret: Optional[str] = Field(default=None)
    auth_project_scope: str = Field(default="vendor-gateway")
    auth_cache_seconds: int = Field(default=300)

    adapter_tool_allowlist: Optional[str] = Field(default=None)

    def tool_allowlist(self) -> Set[str]:
        if not self.adapter_tool_allowlist:
            return set()
        return {item.strip() for item in self.adapter_tool_allowlist.split(",") if item.strip()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
