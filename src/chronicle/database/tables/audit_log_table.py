"""Database table for audit logs."""

import uuid

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB

from chronicle.database.tables.base_class import BaseWithTableName

# Python None is stored as SQL NULL, not JSON null
JSONDocument = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class AuditLog(BaseWithTableName):
    """Append-only history of mutations on application tables."""

    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # WHAT: Target of the mutation (record_id is not checked against the target table)
    table_name = Column(String(100), nullable=False)
    record_id = Column(Text, nullable=False)
    operation = Column(String(10), nullable=False)

    # WHO: Actor snapshot, kept on the row so it outlives the user
    actor_id = Column(Text, nullable=True)
    actor_email = Column(Text, nullable=True)
    actor_role = Column(Text, nullable=True)

    # WHAT CHANGED
    old_values = Column(JSONDocument, nullable=True)
    new_values = Column(JSONDocument, nullable=True)
    changed_fields = Column(JSONDocument, nullable=True)

    # HOW/WHERE: Request context
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    request_id = Column(Text, nullable=True)
    session_id = Column(Text, nullable=True)

    # WHY
    reason = Column(Text, nullable=True)
    source = Column(String(20), nullable=False, default="web", server_default="web")

    # WHEN
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "operation IN ('INSERT', 'UPDATE', 'DELETE')", name="audit_logs_operation_check"
        ),
        CheckConstraint(
            "source IN ('web', 'api', 'system', 'migration')", name="audit_logs_source_check"
        ),
        Index("audit_logs_table_name_idx", "table_name"),
        Index("audit_logs_record_id_idx", "record_id"),
        Index("audit_logs_actor_id_idx", "actor_id"),
        Index("audit_logs_operation_idx", "operation"),
        Index("audit_logs_created_at_idx", "created_at"),
        # Record history (by_record)
        Index("audit_logs_table_record_idx", "table_name", "record_id"),
        # Actor activity (by_actor)
        Index("audit_logs_actor_time_idx", "actor_id", "created_at"),
    )
