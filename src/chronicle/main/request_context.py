"""Identity and correlation values of the request being served.

The authentication layer stores who is acting (``user_id``, ``user_email``,
``user_role``) and the ``correlation_id`` here; audit contexts and JSON log
lines read them back. Values are scoped to the current asyncio task.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

_request_context: ContextVar[Optional[Dict[str, Any]]] = ContextVar(
    "chronicle_request_context", default=None
)


def get_request_context() -> Dict[str, Any]:
    """Return a copy of the values stored for the current request."""
    return dict(_request_context.get() or {})


def set_request_context(**values: Any) -> Dict[str, Any]:
    """Merge values into the stored context; ``None`` removes a key."""
    current = get_request_context()
    for key, value in values.items():
        if value is None:
            current.pop(key, None)
        else:
            current[key] = value
    _request_context.set(current)
    return current


def clear_request_context() -> None:
    _request_context.set(None)


@contextmanager
def request_scope(**values: Any) -> Iterator[Dict[str, Any]]:
    """Store values for the duration of a block, then restore the previous context."""
    merged = get_request_context()
    merged.update({key: value for key, value in values.items() if value is not None})
    token = _request_context.set(merged)
    try:
        yield dict(merged)
    finally:
        _request_context.reset(token)
