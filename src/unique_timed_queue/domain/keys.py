"""Key derivation and identifier helpers."""

import json
from typing import Any

import ulid
from pydantic import BaseModel


def key_of(value: Any) -> str:
    """Return the deduplication key for a queue entry.

    Strings are used as-is, numbers and booleans use their natural text form
    and ``None`` maps to an empty string. Integral floats drop the fraction,
    so ``1`` and ``1.0`` share the key ``"1"``. Everything else is serialized to
    canonical JSON (sorted keys, compact separators), so mappings with the
    same items collide regardless of insertion order. Values that JSON cannot
    represent fall back to ``str()``. Mappings whose keys cannot be sorted
    against each other (``{1: "a", "b": 2}``) have every key converted with
    ``key_of`` first.

    Distinct entries that serialize to the same text share a key and are
    treated as the same entry.

    Args:
        value: The entry to derive a key from.

    Returns:
        The key string.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, int | float):
        return str(value)
    if value is None:
        return ""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    try:
        return _dump(value)
    except TypeError:
        return _dump(_stringify_keys(value))


def _dump(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def _stringify_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {key_of(k): _stringify_keys(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_stringify_keys(item) for item in value]
    return value


def generate_listener_id() -> str:
    """Return a new listener identifier (time-ordered ULID string)."""
    return str(ulid.new())
