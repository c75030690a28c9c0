"""Canonical tool ids and the alias policy used to resolve them.

A canonical id has the form ``adapter-id:tool-name`` where the tool segment is
trimmed and uses hyphens instead of underscores. Every other tolerated
spelling is produced by the transforms in ``ALIAS_POLICY`` once, when an
adapter is registered.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple


def canonical_tool_name(name: object) -> str:
    return str(name if name is not None else "").strip().replace("_", "-")


def canonical_tool_id(adapter_id: str, tool_name: object) -> str:
    return f"{adapter_id}:{canonical_tool_name(tool_name)}"


def split_tool_id(tool_id: object) -> Optional[Tuple[str, str]]:
    if not isinstance(tool_id, str) or ":" not in tool_id:
        return None
    adapter_id, _, tool_name = tool_id.partition(":")
    adapter_id = adapter_id.strip()
    tool_name = tool_name.strip()
    if not adapter_id or not tool_name:
        return None
    return adapter_id, tool_name


def _declared(name: str) -> str:
    return name


def _snake(name: str) -> str:
    return canonical_tool_name(name).replace("-", "_")


def _kebab(name: str) -> str:
    return name.replace("_", "-")


ALIAS_POLICY: Tuple[Callable[[str], str], ...] = (_declared, _snake, _kebab)


def alias_ids(adapter_id: str, tool_name: object) -> List[str]:
    """Every alias id for a tool, excluding its canonical id.

    Each policy transform contributes its own spelling; the lowercased form of
    every spelling (canonical included) is added after them.
    """
    raw = str(tool_name)
    canonical = canonical_tool_id(adapter_id, raw)
    spellings = [f"{adapter_id}:{transform(raw)}" for transform in ALIAS_POLICY]

    aliases: List[str] = []
    for candidate in [*spellings, *(s.lower() for s in [*spellings, canonical])]:
        if candidate != canonical and candidate not in aliases:
            aliases.append(candidate)
    return aliases
