"""Actor and request metadata attached to one audited operation."""

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional
from uuid import UUID

from chronicle.audit.domain.audit_source import AuditSource
from chronicle.audit.domain.constants import (
    FAILURE_NOTE_PREFIX,
    MAX_REASON_LENGTH,
    MAX_USER_AGENT_LENGTH,
)
from chronicle.main.request_context import get_request_context

# Keys used by the identity layer and the request context store
_FIELD_ALIASES = {
    "user_id": "actor_id",
    "user_email": "actor_email",
    "user_role": "actor_role",
    "correlation_id": "request_id",
}


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, (int, UUID)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_source(value: Any) -> AuditSource:
    if isinstance(value, AuditSource):
        return value
    try:
        return AuditSource(str(value).strip().lower())
    except ValueError:
        return AuditSource.WEB


def _describe(error: BaseException) -> str:
    try:
        message = str(error)
    except Exception:
        # __str__ itself failed
        try:
            message = repr(error)
        except Exception:
            message = ""
    return message or "unknown error"


@dataclass(frozen=True)
class AuditContext:
    """Who performed an operation, from where, why and through which channel.

    Malformed optional values are normalised to ``None`` instead of raising:
    an unknown actor is a valid context (system-initiated changes have none).
    """

    actor_id: Optional[str] = None
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    session_id: Optional[str] = None
    reason: Optional[str] = None
    source: AuditSource = AuditSource.WEB

    def __post_init__(self):
        for field in fields(self):
            if field.name == "source":
                continue
            object.__setattr__(self, field.name, _as_text(getattr(self, field.name)))

        object.__setattr__(self, "source", _as_source(self.source))

        if self.user_agent and len(self.user_agent) > MAX_USER_AGENT_LENGTH:
            object.__setattr__(self, "user_agent", self.user_agent[:MAX_USER_AGENT_LENGTH])
        if self.reason and len(self.reason) > MAX_REASON_LENGTH:
            object.__setattr__(self, "reason", self.reason[:MAX_REASON_LENGTH])

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "AuditContext":
        """Build a context from loosely structured identity data.

        Unknown keys are ignored, aliases used by the identity layer
        (``user_id``, ``user_email``, ``user_role``, ``correlation_id``) are
        mapped to their context field.
        """
        if not values:
            return cls()

        known = {field.name for field in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = _FIELD_ALIASES.get(key, key)
            if name in known and name not in kwargs:
                kwargs[name] = value

        return cls(**kwargs)

    @classmethod
    def from_request_context(cls, **overrides: Any) -> "AuditContext":
        """Build a context from the values stored for the current request."""
        values = get_request_context()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.from_mapping(values)

    def with_reason(self, note: str) -> "AuditContext":
        """Return a copy with ``note`` appended to the existing reason."""
        reason = f"{self.reason}; {note}" if self.reason else note
        return replace(self, reason=reason)

    def with_failure(self, error: BaseException) -> "AuditContext":
        message = _describe(error)
        return self.with_reason(f"{FAILURE_NOTE_PREFIX}: {type(error).__name__}: {message}")
