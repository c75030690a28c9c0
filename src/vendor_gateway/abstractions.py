"""Category contracts and the vendor tools that implement them."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .schemas import FieldSpec


Transform = Callable[[Dict[str, Any]], Dict[str, Any]]


def passthrough(payload: Dict[str, Any]) -> Dict[str, Any]:
    return dict(payload)


def _reference(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}"


@dataclass(frozen=True)
class VendorMapping:
    tool: str
    transform: Transform = passthrough


@dataclass(frozen=True)
class VendorConfig:
    adapter: str
    mappings: Dict[str, VendorMapping]


@dataclass(frozen=True)
class Abstraction:
    category: str
    operations: Dict[str, Dict[str, FieldSpec]]
    vendors: Dict[str, VendorConfig]
    default_vendor: Optional[str] = None

    @property
    def vendor_ids(self) -> List[str]:
        return list(self.vendors)

    def resolve_default_vendor(self) -> Optional[str]:
        if self.default_vendor in self.vendors:
            return self.default_vendor
        return next(iter(self.vendors), None)


def _same_tools(names: Dict[str, str]) -> Dict[str, VendorMapping]:
    return {operation: VendorMapping(tool=tool) for operation, tool in names.items()}


_MESSAGE_ITEMS: FieldSpec = {
    "type": "object",
    "properties": {
        "role": {"type": "string", "enum": ["system", "user", "assistant"]},
        "content": {"type": "string"},
    },
    "required": ["role", "content"],
}

_MEMORY_TYPES = ["context", "project", "knowledge", "reference", "personal", "workflow"]


def payment_abstraction(callback_url: Optional[str] = None) -> Abstraction:
    return Abstraction(
        category="payment",
        operations={
            "initializeTransaction": {
                "amount": {"type": "number", "required": True},
                "currency": {"type": "string", "default": "NGN"},
                "email": {"type": "string", "required": True},
                "reference": {"type": "string", "required": False},
                "metadata": {"type": "object", "required": False},
            },
            "verifyTransaction": {
                "reference": {"type": "string", "required": True},
            },
            "createCustomer": {
                "email": {"type": "string", "required": True},
                "firstName": {"type": "string", "required": False},
                "lastName": {"type": "string", "required": False},
                "phone": {"type": "string", "required": False},
            },
            "purchaseAirtime": {
                "phone": {"type": "string", "required": True},
                "amount": {"type": "number", "required": True},
                "network": {"type": "string", "required": True},
                "reference": {"type": "string", "required": False},
            },
            "getTransaction": {
                "transactionId": {"type": "string", "required": True},
            },
        },
        vendors={
            "paystack": VendorConfig(
                adapter="paystack",
                mappings={
                    "initializeTransaction": VendorMapping(
                        tool="initialize-transaction",
                        # Amount stays in the major unit; the vendor client converts.
                        transform=lambda i: {
                            "email": i["email"],
                            "amount": i["amount"],
                            "currency": i.get("currency"),
                            "reference": i.get("reference") or _reference("ref"),
                            "callback_url": callback_url,
                        },
                    ),
                    "verifyTransaction": VendorMapping(
                        tool="verify-transaction",
                        transform=lambda i: {"reference": i["reference"]},
                    ),
                    "createCustomer": VendorMapping(
                        tool="create-customer",
                        transform=lambda i: {
                            "email": i["email"],
                            "first_name": i.get("firstName"),
                            "last_name": i.get("lastName"),
                            "phone": i.get("phone"),
                        },
                    ),
                },
            ),
            "flutterwave": VendorConfig(
                adapter="flutterwave-v3",
                mappings={
                    "initializeTransaction": VendorMapping(
                        tool="initiate-payment",
                        transform=lambda i: {
                            "amount": i["amount"],
                            "currency": i.get("currency"),
                            "tx_ref": i.get("reference") or _reference("fw"),
                            "customer": {"email": i["email"]},
                        },
                    ),
                    "verifyTransaction": VendorMapping(
                        tool="verify-payment",
                        transform=lambda i: {
                            "transaction_id": i["reference"],
                            "tx_ref": i["reference"],
                        },
                    ),
                },
            ),
            "sayswitch": VendorConfig(
                adapter="sayswitch-api-integration",
                mappings={
                    "purchaseAirtime": VendorMapping(
                        tool="purchase-airtime",
                        transform=lambda i: {
                            "phone": i["phone"],
                            "amount": i["amount"],
                            "network": i["network"],
                            "reference": i.get("reference") or _reference("ss"),
                        },
                    ),
                    "getTransaction": VendorMapping(
                        tool="get-transaction",
                        transform=lambda i: {"txn_id": i["transactionId"]},
                    ),
                },
            ),
        },
        default_vendor="paystack",
    )


def banking_abstraction() -> Abstraction:
    return Abstraction(
        category="banking",
        operations={
            "getAccountBalance": {
                "accountId": {"type": "string", "required": True},
            },
            "transferFunds": {
                "fromAccount": {"type": "string", "required": True},
                "toAccount": {"type": "string", "required": True},
                "amount": {"type": "number", "required": True},
                "currency": {"type": "string", "default": "NGN"},
                "reference": {"type": "string", "required": False},
            },
            "verifyAccount": {
                "accountNumber": {"type": "string", "required": True},
                "bankCode": {"type": "string", "required": True},
            },
        },
        vendors={
            "wise": VendorConfig(
                adapter="7-wise-multicurrency-account-mca-platform-api-s",
                mappings={
                    "getAccountBalance": VendorMapping(
                        tool="multi-currency-account-manage-mca-get-multi-currency-account",
                        transform=lambda i: {"accountId": i["accountId"]},
                    ),
                    "transferFunds": VendorMapping(
                        tool="transfers-create-transfer",
                        transform=lambda i: {
                            "sourceAccount": i["fromAccount"],
                            "targetAccount": i["toAccount"],
                            "amount": {"value": i["amount"], "currency": i.get("currency")},
                            "reference": i.get("reference") or _reference("wise"),
                        },
                    ),
                },
            ),
            "bap": VendorConfig(
                adapter="bap",
                mappings={
                    "verifyAccount": VendorMapping(
                        tool="validate-account-number",
                        transform=lambda i: {
                            "account_number": i["accountNumber"],
                            "bank_code": i["bankCode"],
                        },
                    ),
                },
            ),
        },
        default_vendor="wise",
    )


def infrastructure_abstraction() -> Abstraction:
    return Abstraction(
        category="infrastructure",
        operations={
            "createTunnel": {
                "port": {"type": "number", "required": True},
                "subdomain": {"type": "string", "required": False},
                "region": {"type": "string", "default": "us"},
            },
            "listTunnels": {},
        },
        vendors={
            "ngrok": VendorConfig(
                adapter="ngrok-api",
                mappings={
                    "createTunnel": VendorMapping(
                        tool="tunnels-start-tunnel",
                        transform=lambda i: {
                            "addr": i["port"],
                            "subdomain": i.get("subdomain"),
                            "region": i.get("region"),
                        },
                    ),
                    "listTunnels": VendorMapping(
                        tool="tunnels-list-tunnels",
                        transform=lambda i: {},
                    ),
                },
            ),
        },
        default_vendor="ngrok",
    )


def ai_abstraction() -> Abstraction:
    return Abstraction(
        category="ai",
        operations={
            "chat": {
                "messages": {"type": "array", "required": True, "items": _MESSAGE_ITEMS},
                "provider": {"type": "string", "required": False},
                "model": {"type": "string", "default": "qwen2:1.5b"},
                "temperature": {"type": "number", "default": 0.7},
                "max_tokens": {"type": "integer", "required": False},
                "system_prompt": {"type": "string", "required": False},
            },
            "ollama": {
                "model": {"type": "string", "required": True},
                "messages": {"type": "array", "required": True, "items": _MESSAGE_ITEMS},
                "stream": {"type": "boolean", "default": False},
            },
            "embedding": {
                "input": {"type": "string", "required": True},
                "model": {"type": "string", "required": False},
            },
            "listServices": {},
            "listModels": {},
            "health": {},
        },
        vendors={
            "ai-router": VendorConfig(
                adapter="ai-router",
                mappings=_same_tools(
                    {
                        "chat": "ai-chat",
                        "ollama": "ollama",
                        "embedding": "embedding",
                        "listServices": "list-ai-services",
                        "listModels": "list-models",
                        "health": "ai-health",
                    }
                ),
            ),
        },
    )


def memory_abstraction() -> Abstraction:
    return Abstraction(
        category="memory",
        operations={
            "create": {
                "title": {"type": "string", "required": True},
                "content": {"type": "string", "required": True},
                "memory_type": {"type": "string", "enum": _MEMORY_TYPES, "default": "context"},
                "tags": {"type": "array", "items": {"type": "string"}, "required": False},
                "metadata": {"type": "object", "required": False},
            },
            "get": {"id": {"type": "string", "required": True}},
            "update": {
                "id": {"type": "string", "required": True},
                "title": {"type": "string", "required": False},
                "content": {"type": "string", "required": False},
                "memory_type": {"type": "string", "enum": _MEMORY_TYPES},
                "tags": {"type": "array", "items": {"type": "string"}, "required": False},
                "metadata": {"type": "object", "required": False},
            },
            "delete": {"id": {"type": "string", "required": True}},
            "list": {
                "limit": {"type": "integer", "minimum": 1, "maximum": 100, "default": 20},
                "offset": {"type": "integer", "minimum": 0, "default": 0},
                "type": {"type": "string", "enum": _MEMORY_TYPES},
                "tags": {"type": "string", "required": False},
            },
            "search": {
                "query": {"type": "string", "required": True},
                "type": {"type": "string", "enum": _MEMORY_TYPES},
                "threshold": {"type": "number", "minimum": 0, "maximum": 1, "default": 0.8},
                "limit": {"type": "integer", "minimum": 1, "maximum": 100, "default": 10},
                "tags": {"type": "string", "required": False},
            },
            "stats": {},
            "bulkDelete": {
                "ids": {
                    "type": "array",
                    "required": True,
                    "items": {"type": "string"},
                    "minItems": 1,
                    "maxItems": 100,
                },
            },
            "searchDocumentation": {
                "query": {"type": "string", "required": True},
                "section": {"type": "string", "enum": ["all", "api", "guides", "sdks"], "default": "all"},
                "limit": {"type": "integer", "minimum": 1, "maximum": 50, "default": 10},
            },
        },
        vendors={
            "memory-service": VendorConfig(
                adapter="memory-service",
                mappings=_same_tools(
                    {
                        "create": "create-memory",
                        "get": "get-memory",
                        "update": "update-memory",
                        "delete": "delete-memory",
                        "list": "list-memories",
                        "search": "search-memories",
                        "stats": "memory-stats",
                        "bulkDelete": "bulk-delete-memories",
                        "searchDocumentation": "search-documentation",
                    }
                ),
            ),
        },
    )


def _flag(default: bool) -> FieldSpec:
    return {"type": "boolean", "default": default}


def _bounded(minimum: int, maximum: int, default: int) -> FieldSpec:
    return {"type": "integer", "minimum": minimum, "maximum": maximum, "default": default}


_STRINGS: FieldSpec = {"type": "array", "items": {"type": "string"}, "required": False}


def intelligence_abstraction() -> Abstraction:
    return Abstraction(
        category="intelligence",
        operations={
            "analyzePatterns": {
                "time_range_days": _bounded(1, 365, 30),
                "include_insights": _flag(True),
            },
            "suggestTags": {
                "memory_id": {"type": "string", "required": False},
                "content": {"type": "string", "required": False},
                "title": {"type": "string", "required": False},
                "existing_tags": _STRINGS,
                "max_suggestions": _bounded(1, 10, 5),
            },
            "findRelated": {
                "memory_id": {"type": "string", "required": False},
                "query": {"type": "string", "required": False},
                "limit": _bounded(1, 20, 5),
                "similarity_threshold": {"type": "number", "minimum": 0, "maximum": 1, "default": 0.7},
            },
            "detectDuplicates": {
                "similarity_threshold": {
                    "type": "number",
                    "minimum": 0.8,
                    "maximum": 0.99,
                    "default": 0.85,
                },
                "include_archived": _flag(False),
            },
            "extractInsights": {
                "memory_ids": _STRINGS,
                "topic": {"type": "string", "required": False},
                "time_range_days": _bounded(1, 365, 30),
            },
            "healthCheck": {"include_recommendations": _flag(True)},
            "behaviorRecord": {
                "pattern_name": {"type": "string", "required": True},
                "description": {"type": "string", "required": True},
                "context": {"type": "string", "required": False},
                "steps": _STRINGS,
                "tags": _STRINGS,
            },
            "behaviorRecall": {
                "query": {"type": "string", "required": True},
                "context": {"type": "string", "required": False},
                "limit": _bounded(1, 10, 5),
            },
            "behaviorSuggest": {
                "current_context": {"type": "string", "required": False},
                "previous_actions": _STRINGS,
                "limit": _bounded(1, 10, 5),
            },
        },
        vendors={
            "intelligence-api": VendorConfig(
                adapter="intelligence-api",
                mappings=_same_tools(
                    {
                        "analyzePatterns": "intelligence-analyze-patterns",
                        "suggestTags": "intelligence-suggest-tags",
                        "findRelated": "intelligence-find-related",
                        "detectDuplicates": "intelligence-detect-duplicates",
                        "extractInsights": "intelligence-extract-insights",
                        "healthCheck": "intelligence-health-check",
                        "behaviorRecord": "intelligence-behavior-record",
                        "behaviorRecall": "intelligence-behavior-recall",
                        "behaviorSuggest": "intelligence-behavior-suggest",
                    }
                ),
            ),
        },
    )


_KEY_ID: Dict[str, FieldSpec] = {"key_id": {"type": "string", "required": True}}

_ACCESS_LEVELS = ["public", "authenticated", "team", "admin", "enterprise"]


def security_abstraction() -> Abstraction:
    return Abstraction(
        category="security",
        operations={
            "createAPIKey": {
                "name": {"type": "string", "required": True},
                "description": {"type": "string", "required": False},
                "access_level": {"type": "string", "enum": _ACCESS_LEVELS, "default": "authenticated"},
                "expires_in_days": {"type": "integer", "default": 365},
            },
            "deleteAPIKey": dict(_KEY_ID),
            "rotateAPIKey": dict(_KEY_ID),
            "revokeAPIKey": dict(_KEY_ID),
            "listAPIKeys": {
                "active_only": _flag(True),
                "project_id": {"type": "string", "required": False},
            },
            "getAPIKey": dict(_KEY_ID),
            "verifyAPIKey": {"api_key": {"type": "string", "required": True}},
            "verifyToken": {"token": {"type": "string", "required": True}},
        },
        vendors={
            "security-service": VendorConfig(
                adapter="security-service",
                mappings=_same_tools(
                    {
                        "createAPIKey": "create-api-key",
                        "deleteAPIKey": "delete-api-key",
                        "rotateAPIKey": "rotate-api-key",
                        "revokeAPIKey": "revoke-api-key",
                        "listAPIKeys": "list-api-keys",
                        "getAPIKey": "get-api-key",
                        "verifyAPIKey": "verify-api-key",
                        "verifyToken": "verify-token",
                    }
                ),
            ),
        },
    )


def _document(document_type: str, number_key: str) -> Transform:
    def transform(payload: Dict[str, Any]) -> Dict[str, Any]:
        number = payload.get(number_key) or payload.get("document_number")
        return {
            **payload,
            "document_type": document_type,
            "document_number": number,
            "customer_id": payload.get("customer_id") or number or f"sourceid-{document_type}",
        }

    return transform


def _any_document(payload: Dict[str, Any]) -> Dict[str, Any]:
    number = payload.get("documentNumber") or payload.get("document_number")
    return {
        **payload,
        "document_type": payload.get("documentType") or payload.get("document_type") or "national_id",
        "document_number": number,
        "customer_id": payload.get("customer_id") or number or "sourceid-document",
    }


def _person(**extra: FieldSpec) -> Dict[str, FieldSpec]:
    return {
        "firstName": {"type": "string", "required": True},
        "lastName": {"type": "string", "required": True},
        "dateOfBirth": {"type": "string", "required": False},
        **extra,
    }


# Tools served under the same name by every verification vendor.
_SHARED_VERIFICATION_TOOLS = {
    "verifyIdentityDocument": "verify-identity-document",
    "verifyPhoneEmail": "verify-phone-email",
    "verifyAddress": "verify-address",
    "verifyBusinessRegistration": "verify-business-registration",
    "verifyTaxIdentification": "verify-tax-identification",
    "verifyBankAccount": "verify-bank-account",
    "facialRecognition": "facial-recognition",
    "livenessDetection": "liveness-detection",
    "ageGenderDetection": "age-gender-detection",
    "sanctionsScreening": "sanctions-screening",
    "pepScreening": "pep-screening",
    "adverseMediaScreening": "adverse-media-screening",
    "criminalBackgroundCheck": "criminal-background-check",
    "employmentHistoryCheck": "employment-history-check",
    "getVerificationStatus": "get-verification-status",
    "listSupportedCountries": "list-supported-countries",
    "getVerificationProviders": "get-verification-providers",
}


def verification_abstraction() -> Abstraction:
    return Abstraction(
        category="verification",
        operations={
            "verifyNIN": {"nin": {"type": "string", "required": True}, **_person()},
            "verifyBVN": {"bvn": {"type": "string", "required": True}, **_person()},
            "verifyPassport": {
                "passportNumber": {"type": "string", "required": True},
                **_person(
                    dateOfBirth={"type": "string", "required": True},
                    nationality={"type": "string", "required": False},
                ),
            },
            "verifyDocument": {
                "documentType": {"type": "string", "required": True},
                "documentNumber": {"type": "string", "required": True},
                **_person(),
            },
            "getHistory": {
                "limit": _bounded(1, 100, 50),
                "offset": {"type": "integer", "minimum": 0, "default": 0},
                "type": {"type": "string", "required": False},
            },
            "verifyIdentityDocument": {
                "document_type": {"type": "string", "required": True},
                "document_number": {"type": "string", "required": True},
                "customer_id": {"type": "string", "required": True},
                "country": {"type": "string", "required": False},
            },
            "verifyPhoneEmail": {
                "customer_id": {"type": "string", "required": True},
                "phone_number": {"type": "string", "required": False},
                "email": {"type": "string", "required": False},
                "send_otp": {"type": "boolean", "required": False},
                "otp_code": {"type": "string", "required": False},
            },
            "verifyAddress": {
                "address": {"type": "string", "required": True},
                "proof_document": {"type": "string", "required": True},
                "customer_id": {"type": "string", "required": True},
            },
            "verifyBusinessRegistration": {
                "business_name": {"type": "string", "required": True},
                "registration_number": {"type": "string", "required": True},
                "country": {"type": "string", "required": False},
            },
            "verifyTaxIdentification": {
                "tax_id": {"type": "string", "required": True},
                "business_name": {"type": "string", "required": True},
                "country": {"type": "string", "required": False},
            },
            "verifyBankAccount": {
                "account_number": {"type": "string", "required": True},
                "bank_code": {"type": "string", "required": True},
                "business_name": {"type": "string", "required": True},
            },
            "facialRecognition": {
                "image1": {"type": "string", "required": True},
                "image2": {"type": "string", "required": True},
            },
            "livenessDetection": {
                "image": {"type": "string", "required": True},
                "check_type": {"type": "string", "required": False},
            },
            "ageGenderDetection": {"image": {"type": "string", "required": True}},
            "sanctionsScreening": {
                "full_name": {"type": "string", "required": True},
                "country": {"type": "string", "required": False},
            },
            "pepScreening": {
                "full_name": {"type": "string", "required": True},
                "country": {"type": "string", "required": True},
            },
            "adverseMediaScreening": {
                "full_name": {"type": "string", "required": True},
                "business_name": {"type": "string", "required": False},
            },
            "criminalBackgroundCheck": {
                "full_name": {"type": "string", "required": True},
                "date_of_birth": {"type": "string", "required": True},
            },
            "employmentHistoryCheck": {
                "full_name": {"type": "string", "required": True},
                "employers": {"type": "object", "required": False},
            },
            "getVerificationStatus": {
                "verification_id": {"type": "string", "required": False},
                "reference": {"type": "string", "required": False},
            },
            "listSupportedCountries": {"service_type": {"type": "string", "required": False}},
            "getVerificationProviders": {
                "service_type": {"type": "string", "required": False},
                "country": {"type": "string", "required": False},
            },
        },
        vendors={
            "prembly": VendorConfig(
                adapter="verification-service",
                mappings=_same_tools(
                    {
                        "verifyNIN": "verify-nin",
                        "verifyBVN": "verify-bvn",
                        "verifyPassport": "verify-passport",
                        "verifyDocument": "verify-document",
                        "getHistory": "get-verification-history",
                        **_SHARED_VERIFICATION_TOOLS,
                    }
                ),
            ),
            "sourceid": VendorConfig(
                adapter="verification-service",
                mappings={
                    "verifyNIN": VendorMapping("verify-identity-document", _document("nin", "nin")),
                    "verifyBVN": VendorMapping("verify-identity-document", _document("bvn", "bvn")),
                    "verifyPassport": VendorMapping(
                        "verify-identity-document", _document("passport", "passportNumber")
                    ),
                    "verifyDocument": VendorMapping("verify-identity-document", _any_document),
                    **_same_tools(_SHARED_VERIFICATION_TOOLS),
                },
            ),
        },
    )


def default_abstractions(callback_url: Optional[str] = None) -> List[Abstraction]:
    return [
        payment_abstraction(callback_url),
        banking_abstraction(),
        infrastructure_abstraction(),
        ai_abstraction(),
        memory_abstraction(),
        intelligence_abstraction(),
        security_abstraction(),
        verification_abstraction(),
    ]
