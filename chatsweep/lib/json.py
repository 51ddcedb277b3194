"""JSON helpers backed by orjson.

Vendor stores hand us both ``str`` and ``bytes`` values; both go straight to
orjson. ``dumps`` is compact, which is what the size heuristics measure.
"""

from __future__ import annotations

from typing import Any

import orjson

# orjson.JSONDecodeError subclasses ValueError; catch this name at call sites.
JSONDecodeError = orjson.JSONDecodeError


def loads(obj: str | bytes) -> Any:
    """Load a JSON document from text or bytes."""
    if isinstance(obj, str):
        # Surrogate-escaped text from undecodable store rows is not valid
        # UTF-8 and orjson refuses it; those rows are not JSON anyway.
        try:
            obj = obj.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise JSONDecodeError("value is not valid UTF-8", "", 0) from exc
    return orjson.loads(obj)


def try_loads(obj: str | bytes | None) -> Any | None:
    """Parse ``obj`` or return None when it is missing or not valid JSON."""
    if obj is None:
        return None
    try:
        return loads(obj)
    except JSONDecodeError:
        return None


def dumps(obj: Any) -> str:
    """Dump ``obj`` as compact JSON text."""
    return orjson.dumps(obj).decode("utf-8")


def serialized_size(obj: Any) -> int:
    """Length in bytes of the compact serialization of ``obj``."""
    try:
        return len(orjson.dumps(obj))
    except TypeError:
        return 0


__all__ = ["JSONDecodeError", "loads", "try_loads", "dumps", "serialized_size"]
