"""Best-effort keyword classifiers for adapters and tools."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple


_CATEGORY_FRAGMENTS: Sequence[Tuple[str, Sequence[str]]] = (
    ("payments", ("stripe", "paystack", "flutterwave", "bap", "wise", "xpress-wallet", "merchant-api")),
    ("infrastructure", ("ngrok", "hostinger")),
    ("analytics", ("google-analytics", "analytics")),
    ("media", ("shutterstock",)),
    ("storage", ("supabase", "memory")),
    ("banking", ("open-banking",)),
)

_CAPABILITIES: Sequence[Tuple[str, List[str]]] = (
    ("stripe", ["card_payments", "subscriptions", "invoices", "transfers", "connect"]),
    ("paystack", ["card_payments", "bank_transfers", "subscriptions", "split_payments"]),
    ("flutterwave", ["card_payments", "mobile_money", "bank_transfers", "bills"]),
    ("ngrok", ["tunnels", "domains", "endpoints", "edge"]),
    ("supabase", ["memory", "storage", "auth", "database"]),
)

_COUNTRIES: Sequence[Tuple[str, List[str]]] = (
    ("paystack", ["NG", "GH", "ZA", "KE"]),
    ("flutterwave", ["NG", "GH", "KE", "ZA", "TZ", "UG", "RW"]),
    ("stripe", ["US", "GB", "EU", "CA", "AU", "GLOBAL"]),
    ("wise", ["GLOBAL"]),
    ("bap", ["NG"]),
)

_CURRENCIES: Sequence[Tuple[str, List[str]]] = (
    ("paystack", ["NGN", "GHS", "ZAR", "KES"]),
    ("flutterwave", ["NGN", "GHS", "KES", "ZAR", "USD", "EUR", "GBP"]),
    ("stripe", ["USD", "EUR", "GBP", "CAD", "AUD"]),
    ("wise", ["USD", "EUR", "GBP", "NGN"]),
)

_TAG_PATTERNS: Sequence[Tuple[str, "re.Pattern[str]"]] = tuple(
    (tag, re.compile(pattern))
    for tag, pattern in (
        ("payments", r"payment|charge|pay|transaction"),
        ("transfers", r"transfer|send|payout"),
        ("customers", r"customer|user|account"),
        ("subscriptions", r"subscription|recurring|plan"),
        ("refunds", r"refund|reverse|cancel"),
        ("webhooks", r"webhook|event|notification"),
        ("verification", r"verify|validate|check"),
        ("read", r"list|get|fetch|retrieve"),
        ("create", r"create|initialize|init|new"),
        ("update", r"update|modify|edit"),
        ("delete", r"delete|remove|cancel"),
        ("cards", r"card|credit|debit"),
        ("bank", r"bank|account|iban"),
        ("mobile", r"mobile|ussd|momo"),
        ("invoices", r"invoice|bill"),
        ("nigeria", r"nigeria|naira|ngn"),
        ("ghana", r"ghana|ghs|cedi"),
        ("kenya", r"kenya|kes|shilling"),
        ("south-africa", r"south.?africa|zar|rand"),
    )
)

_HIGH_RISK = re.compile(r"charge|pay|transfer|payout|send|withdraw|refund|delete|remove|cancel")
_MEDIUM_RISK = re.compile(r"create|update|modify|edit|set|enable|disable")


def _first_match(adapter_id: str, table: Sequence[Tuple[str, List[str]]]) -> Optional[List[str]]:
    lowered = adapter_id.lower()
    for fragment, values in table:
        if fragment in lowered:
            return list(values)
    return None


def infer_adapter_category(adapter_id: str) -> str:
    lowered = adapter_id.lower()
    for category, fragments in _CATEGORY_FRAGMENTS:
        if any(fragment in lowered for fragment in fragments):
            return category
    return "general"


def infer_capabilities(adapter_id: str) -> List[str]:
    return _first_match(adapter_id, _CAPABILITIES) or ["general"]


def infer_countries(adapter_id: str) -> List[str]:
    return _first_match(adapter_id, _COUNTRIES) or ["GLOBAL"]


def infer_currencies(adapter_id: str) -> List[str]:
    return _first_match(adapter_id, _CURRENCIES) or []


def infer_tags(adapter_id: str, tool_name: str, description: Optional[str] = "") -> List[str]:
    text = f"{adapter_id} {tool_name} {description or ''}".lower()
    tags = [tag for tag, pattern in _TAG_PATTERNS if pattern.search(text)]
    if adapter_id not in tags:
        tags.append(adapter_id)
    return tags


def infer_risk_level(tool_name: str, description: Optional[str] = "") -> str:
    text = f"{tool_name} {description or ''}".lower()
    if _HIGH_RISK.search(text):
        return "high"
    if _MEDIUM_RISK.search(text):
        return "medium"
    return "low"


def extract_required_params(schema: Optional[Dict[str, Any]]) -> List[str]:
    if not isinstance(schema, dict):
        return []
    return list(schema.get("required") or [])


def extract_optional_params(schema: Optional[Dict[str, Any]]) -> List[str]:
    if not isinstance(schema, dict) or not isinstance(schema.get("properties"), dict):
        return []
    required = set(schema.get("required") or [])
    return [name for name in schema["properties"] if name not in required]


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in re.split(r"[-_]", text))
