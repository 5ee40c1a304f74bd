"""Audit domain models and enums."""

from chronicle.audit.domain.audit_context import AuditContext
from chronicle.audit.domain.audit_log import AuditRecord, AuditStatistic
from chronicle.audit.domain.audit_source import AuditSource
from chronicle.audit.domain.exceptions import AuditValidationError
from chronicle.audit.domain.operation import Operation
from chronicle.audit.domain.retention_policy import RetentionPolicy

__all__ = [
    "AuditContext",
    "AuditRecord",
    "AuditSource",
    "AuditStatistic",
    "AuditValidationError",
    "Operation",
    "RetentionPolicy",
]
