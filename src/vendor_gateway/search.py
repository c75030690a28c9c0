"""Deterministic intent search over the operation registry.

Scores are additive weights capped at 1.0. When the top results are weak or
close together the caller is told to pick rather than being handed a guess.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from .models import Operation
from .operation_registry import OperationRegistry


_WEIGHTS = {
    "exact_tool": 0.5,
    "exact_adapter": 0.3,
    "tag_overlap": 0.25,
    "name": 0.2,
    "description": 0.15,
    "category": 0.1,
    "context": 0.1,
}

_STOP_WORDS = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "from", "have", "been",
        "would", "could", "should", "will", "can", "may", "might", "must",
        "want", "need", "like", "how", "what", "when", "where", "which", "who",
        "please", "help", "using", "use", "make", "get", "set", "via", "api",
    }
)

_NON_TOKEN = re.compile(r"[^a-z0-9\s-]")


def tokenize(text: Optional[str]) -> List[str]:
    if not text:
        return []
    cleaned = _NON_TOKEN.sub(" ", text.lower())
    return [token for token in cleaned.split() if len(token) > 2 and token not in _STOP_WORDS]


def _token_overlap(tokens_a: List[str], tokens_b: List[str]) -> float:
    if not tokens_a or not tokens_b:
        return 0.0
    set_b = set(tokens_b)
    return sum(1 for token in tokens_a if token in set_b) / len(tokens_a)


def _tag_overlap(tokens: List[str], tags: List[str]) -> float:
    if not tags:
        return 0.0
    tag_set = {tag.lower() for tag in tags}
    matches = 0.0
    for token in tokens:
        if token in tag_set:
            matches += 1
        for tag in tag_set:
            if token in tag or tag in token:
                matches += 0.5
    return matches / max(len(tokens), 1)


class SearchEngine:
    def __init__(self, registry: OperationRegistry, min_confidence: float = 0.3) -> None:
        self.registry = registry
        self.min_confidence = min_confidence

    def search(
        self,
        query: str,
        adapter: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
        limit: int = 3,
    ) -> Dict[str, Any]:
        tokens = tokenize(query)
        query_lower = (query or "").lower()

        if adapter:
            candidates = self.registry.get_adapter_operations(adapter)
        else:
            candidates = self.registry.get_all_operations()

        scored = [(self.score(op, tokens, query_lower, context), op) for op in candidates]
        scored.sort(key=lambda item: item[0], reverse=True)
        results = [item for item in scored if item[0] >= self.min_confidence][:limit]

        needs_selection = len(results) > 1 and (
            results[0][0] < 0.7 or results[0][0] - results[1][0] < 0.15
        )

        return {
            "results": [
                {**op.to_dict(), "confidence": round(score, 4), "why": self._reason(op, tokens)}
                for score, op in results
            ],
            "needs_selection": needs_selection,
            "mode": "adapter-specific" if adapter else "global",
            "query_interpreted": self._interpret(tokens, context),
        }

    def score(
        self,
        operation: Operation,
        tokens: List[str],
        query_lower: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> float:
        score = 0.0
        if query_lower == operation.tool_id.lower():
            score += _WEIGHTS["exact_tool"]
        if operation.adapter.lower() in query_lower:
            score += _WEIGHTS["exact_adapter"]

        score += _tag_overlap(tokens, operation.tags) * _WEIGHTS["tag_overlap"]
        score += _token_overlap(tokens, tokenize(operation.name)) * _WEIGHTS["name"]
        if operation.description:
            score += _token_overlap(tokens, tokenize(operation.description)) * _WEIGHTS["description"]

        category = operation.category.lower()
        if any(token in category for token in tokens):
            score += _WEIGHTS["category"]

        if context:
            country = str(context.get("country") or "").lower()
            if country and any(country in tag.lower() for tag in operation.tags):
                score += _WEIGHTS["context"]
            use_case = context.get("use_case")
            if use_case and any(use_case in tag for tag in operation.tags):
                score += _WEIGHTS["context"]

        if not operation.is_mock:
            score *= 1.2
        return min(score, 1.0)

    def common_operations(self, adapter_id: str, limit: int = 5) -> List[str]:
        def weight(op: Operation) -> int:
            name = op.name.lower()
            value = 0
            if "list" in name or "get" in name:
                value += 2
            if "create" in name or "initialize" in name:
                value += 3
            if "verify" in name or "validate" in name:
                value += 2
            if "transaction" in name:
                value += 2
            if "customer" in name:
                value += 1
            if not op.is_mock:
                value += 1
            return value

        operations = sorted(
            self.registry.get_adapter_operations(adapter_id), key=weight, reverse=True
        )
        return [op.tool_id for op in operations[:limit]]

    def _reason(self, operation: Operation, tokens: List[str]) -> str:
        reasons = []
        name = operation.name.lower()
        matched = [token for token in tokens if token in name]
        if matched:
            reasons.append(f"Name matches: {', '.join(matched)}")

        matched_tags = [tag for tag in operation.tags if any(t in tag.lower() for t in tokens)]
        if matched_tags:
            reasons.append(f"Relevant tags: {', '.join(matched_tags[:3])}")

        if not operation.is_mock:
            reasons.append("Live adapter with real execution")
        if not reasons:
            reasons.append(f"From {operation.adapter} adapter")
        return ". ".join(reasons)

    def _interpret(self, tokens: List[str], context: Optional[Mapping[str, Any]]) -> str:
        parts = list(tokens)
        for key in ("country", "currency", "use_case"):
            if context and context.get(key):
                parts.append(f"{key}:{context[key]}")
        return ", ".join(parts)
