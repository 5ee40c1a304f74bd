from chronicle.database.tables.audit_log_table import AuditLog
from chronicle.database.tables.audit_retention_policy_table import AuditRetentionPolicy
from chronicle.database.tables.base_class import Base

__all__ = ["AuditLog", "AuditRetentionPolicy", "Base"]
