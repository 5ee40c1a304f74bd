"""Assembles audit records from an operation descriptor and its context."""

from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union
from uuid import UUID, uuid4

from chronicle.audit.domain.audit_context import AuditContext
from chronicle.audit.domain.audit_log import AuditRecord
from chronicle.audit.domain.constants import MAX_TABLE_NAME_LENGTH
from chronicle.audit.domain.diff import diff, to_jsonable
from chronicle.audit.domain.exceptions import AuditValidationError
from chronicle.audit.domain.operation import Operation
from chronicle.main.clock import utcnow

ContextLike = Union[AuditContext, Mapping[str, Any], None]


def parse_operation(operation: Union[Operation, str]) -> Operation:
    if isinstance(operation, Operation):
        return operation
    try:
        return Operation(str(operation).strip().upper())
    except ValueError:
        raise AuditValidationError(
            f"operation must be one of INSERT, UPDATE, DELETE, got: {operation!r}"
        ) from None


def require_text(name: str, value: Any, max_length: Optional[int] = None) -> str:
    """Validate an identity field; ids given as int or UUID are stringified."""
    if isinstance(value, (int, UUID)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise AuditValidationError(f"{name} is required and must be a non-empty string")
    if max_length is not None and len(value) > max_length:
        raise AuditValidationError(f"{name} must be at most {max_length} characters")
    return value


def _snapshot(name: str, values: Optional[Mapping[str, Any]]) -> Optional[dict]:
    if values is None:
        return None
    if not isinstance(values, Mapping):
        raise AuditValidationError(f"{name} must be a mapping, got: {type(values).__name__}")
    return to_jsonable(values)


def _as_context(context: ContextLike) -> AuditContext:
    if isinstance(context, AuditContext):
        return context
    if isinstance(context, Mapping):
        return AuditContext.from_mapping(context)
    return AuditContext()


class AuditRecordBuilder:
    """Builds immutable :class:`AuditRecord` values without touching storage."""

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], UUID] = uuid4,
    ):
        self.clock = clock
        self.id_factory = id_factory

    def build(
        self,
        table_name: str,
        record_id: str,
        operation: Union[Operation, str],
        context: ContextLike = None,
        old_values: Optional[Mapping[str, Any]] = None,
        new_values: Optional[Mapping[str, Any]] = None,
    ) -> AuditRecord:
        """
        Build an audit record for one mutation attempt.

        INSERT never carries an old snapshot and DELETE never carries a new
        one; a stray snapshot on those is dropped. For UPDATE the changed
        fields are computed from whichever snapshots are present, and left
        empty when neither is.

        Args:
            table_name: Table the mutated record lives in
            record_id: Identifier of the mutated record
            operation: INSERT, UPDATE or DELETE
            context: Actor and request metadata (missing fields are allowed)
            old_values: Snapshot before the mutation
            new_values: Snapshot after the mutation

        Returns:
            The new audit record

        Raises:
            AuditValidationError: If an identity field or the operation is malformed
        """
        table_name = require_text("table_name", table_name, MAX_TABLE_NAME_LENGTH)
        record_id = require_text("record_id", record_id)
        operation = parse_operation(operation)
        old_values = _snapshot("old_values", old_values)
        new_values = _snapshot("new_values", new_values)

        changed_fields = None
        if operation == Operation.INSERT:
            old_values = None
            new_values = new_values if new_values is not None else {}
        elif operation == Operation.DELETE:
            new_values = None
            old_values = old_values if old_values is not None else {}
        elif old_values is not None or new_values is not None:
            changed_fields = diff(old_values, new_values)

        audit_context = _as_context(context)

        return AuditRecord(
            id=self.id_factory(),
            table_name=table_name,
            record_id=record_id,
            operation=operation,
            created_at=self.clock(),
            actor_id=audit_context.actor_id,
            actor_email=audit_context.actor_email,
            actor_role=audit_context.actor_role,
            ip_address=audit_context.ip_address,
            user_agent=audit_context.user_agent,
            request_id=audit_context.request_id,
            session_id=audit_context.session_id,
            reason=audit_context.reason,
            source=audit_context.source,
            old_values=old_values,
            new_values=new_values,
            changed_fields=changed_fields,
        )
