"""Audit log domain model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from chronicle.audit.domain.audit_context import AuditContext
from chronicle.audit.domain.audit_source import AuditSource
from chronicle.audit.domain.operation import Operation


@dataclass(frozen=True)
class AuditRecord:
    """Immutable record of one observed mutation attempt.

    Actor fields are copied onto the record so the history stays readable
    after the actor itself has been deleted.
    """

    id: UUID
    table_name: str
    record_id: str
    operation: Operation
    created_at: datetime
    actor_id: Optional[str] = None
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    session_id: Optional[str] = None
    reason: Optional[str] = None
    source: AuditSource = AuditSource.WEB
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None
    changed_fields: Optional[list[str]] = None

    def __post_init__(self):
        """Validate invariants."""
        if self.operation == Operation.INSERT and self.old_values is not None:
            raise ValueError("old_values must be absent for INSERT")
        if self.operation == Operation.DELETE and self.new_values is not None:
            raise ValueError("new_values must be absent for DELETE")
        if self.operation != Operation.UPDATE and self.changed_fields is not None:
            raise ValueError("changed_fields is only recorded for UPDATE")

    @property
    def context(self) -> AuditContext:
        return AuditContext(
            actor_id=self.actor_id,
            actor_email=self.actor_email,
            actor_role=self.actor_role,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
            request_id=self.request_id,
            session_id=self.session_id,
            reason=self.reason,
            source=self.source,
        )

    def log_extra(self) -> dict:
        """Identity of the record, enough to reconcile a lost write by hand."""
        return {
            "audit_log_id": str(self.id),
            "table_name": self.table_name,
            "record_id": self.record_id,
            "operation": self.operation.value,
        }


@dataclass(frozen=True)
class AuditStatistic:
    """Number of audit records for one (table, operation) pair."""

    table_name: str
    operation: Operation
    count: int
