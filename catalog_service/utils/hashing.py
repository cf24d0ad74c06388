"""Deterministic serialization and hashing of request parameters.

Cache keys must be identical for logically identical inputs regardless of how
the caller built the mapping, so every mapping is serialized with its keys in
lexicographic order before hashing. Sequences keep their order.

Example:
    >>> stable_stringify({"b": 2, "a": [3, {"d": 1, "c": None}]})
    '{"a":[3,{"c":null,"d":1}],"b":2}'
    >>> stable_hash({"a": 1, "b": 2}) == stable_hash({"b": 2, "a": 1})
    True
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def canonical_datetime(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and ``Z``.

    Naive datetimes are treated as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (
        value.astimezone(UTC)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def _canonicalize(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, datetime):
        # Full precision: filters compare at the microsecond
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _canonicalize(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(item) for item in value]
    msg = f"Cannot canonicalize value of type {type(value).__name__}"
    raise TypeError(msg)


def stable_stringify(value: Any) -> str:
    """Serialize ``value`` to compact JSON with recursively sorted mapping keys.

    Raises:
        TypeError: If the value contains an unsupported type.
    """
    return json.dumps(_canonicalize(value), separators=(",", ":"), ensure_ascii=False)


def stable_hash(value: Any) -> str:
    """Return a fixed-length hex digest of the canonical form of ``value``."""
    # SHA-1 used for non-cryptographic cache key hashing
    return hashlib.sha1(stable_stringify(value).encode("utf-8")).hexdigest()  # noqa: S324


__all__ = ["canonical_datetime", "stable_hash", "stable_stringify"]
