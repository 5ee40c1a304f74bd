"""Database table for audit retention policies."""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from chronicle.database.tables.base_class import BasePublic


class AuditRetentionPolicy(BasePublic):
    """Table for per-table audit log retention configuration."""

    __tablename__ = "audit_retention_policies"

    # One policy per audited table
    table_name = Column(String(100), nullable=False, unique=True)

    retention_days = Column(Integer, nullable=False, default=365)
    # Declared only, archiving is delegated to an optional hook
    archive_before_delete = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Cleanup tracking
    last_cleanup_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("audit_retention_policies_active_idx", "is_active"),
    )
