"""Retention policy domain model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from chronicle.audit.domain.constants import DEFAULT_RETENTION_DAYS


@dataclass
class RetentionPolicy:
    """How long audit records of one target table are kept."""

    id: UUID
    table_name: str
    retention_days: int = DEFAULT_RETENTION_DAYS
    archive_before_delete: bool = True
    is_active: bool = True
    last_cleanup_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.table_name:
            raise ValueError("table_name is required")
        if self.retention_days < 0:
            raise ValueError("retention_days cannot be negative")
