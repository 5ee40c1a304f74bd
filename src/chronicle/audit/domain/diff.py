"""Field level change detection between two record snapshots."""

import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional
from uuid import UUID


def _normalize(value: Any, collapse_floats: bool) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _normalize(item, collapse_floats) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item, collapse_floats) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_normalize(item, collapse_floats) for item in value), key=_dumps)
    if isinstance(value, bool) or value is None:
        return value
    if collapse_floats and isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Enum):
        return _normalize(value.value, collapse_floats)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    return value


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def canonicalize(value: Any) -> Any:
    """Reduce ``value`` to plain JSON types with a stable shape.

    Tuples and sets become lists, integral floats collapse to ints so ``1``
    and ``1.0`` compare equal. Mapping keys are sorted on serialization.
    """
    return _normalize(value, collapse_floats=True)


def to_jsonable(value: Any) -> Any:
    """Like :func:`canonicalize` but keeps numbers exactly as given."""
    return _normalize(value, collapse_floats=False)


def serialize(value: Any) -> str:
    """Canonical JSON text of ``value``."""
    return _dumps(canonicalize(value))


def diff(
    old: Optional[Mapping[str, Any]],
    new: Optional[Mapping[str, Any]],
) -> list[str]:
    """Return the names of fields whose values differ between two snapshots.

    Keys of ``new`` come first in their own order, followed by keys that only
    exist in ``old``. A missing side is treated as an empty snapshot.
    """
    old = old or {}
    new = new or {}

    changed = [
        key
        for key in new
        if key not in old or serialize(old[key]) != serialize(new[key])
    ]
    changed.extend(key for key in old if key not in new)
    return changed
