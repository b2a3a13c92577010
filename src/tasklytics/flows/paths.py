"""Dotted-path lookup over event payloads and workspace snapshots.

Flow conditions and templates refer to values such as ``toStatus``,
``sprint.name`` or ``tasks.0.status``. A path is resolved against the event
payload first and falls back to the current snapshot.
"""

import math
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class _Missing:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def _step(node: Any, part: str) -> Any:
    if isinstance(node, BaseModel):
        fields = type(node).model_fields
        if part in fields:
            return getattr(node, part)
        for name, info in fields.items():
            if info.alias == part:
                return getattr(node, name)
        extra = node.model_extra or {}
        return extra.get(part, MISSING)
    if isinstance(node, Mapping):
        return node.get(part, MISSING)
    if isinstance(node, Sequence) and not isinstance(node, (str, bytes)):
        try:
            index = int(part)
        except ValueError:
            if part == "length":
                return len(node)
            return MISSING
        if -len(node) <= index < len(node):
            return node[index]
        return MISSING
    return MISSING


def _resolve(node: Any, parts: list[str]) -> Any:
    if not parts:
        return node
    if node is None or node is MISSING:
        return MISSING
    return _resolve(_step(node, parts[0]), parts[1:])


def resolve_path(root: Any, path: Optional[str]) -> Any:
    """Resolves a dotted path, returning MISSING when any segment is absent.

    Mappings are indexed by key, pydantic models by field name or alias
    (including allowed extra fields) and sequences by integer position or
    ``length``.
    """
    if root is None or not path:
        return MISSING
    return _resolve(root, [p.strip() for p in path.split(".")])


def is_absent(value: Any) -> bool:
    return value is MISSING or value is None


def lookup(path: str, payload: Any, snapshot: Any = None) -> Any:
    """Resolves ``path`` in the payload, falling back to the snapshot."""
    value = resolve_path(payload, path)
    if is_absent(value):
        fallback = resolve_path(snapshot, path)
        if fallback is not MISSING:
            return fallback
    return value


def stringify(value: Any) -> str:
    """Renders a value the way flow templates display it."""
    if value is MISSING:
        return ""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(v) for v in value)
    if isinstance(value, Enum):
        return stringify(value.value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)
