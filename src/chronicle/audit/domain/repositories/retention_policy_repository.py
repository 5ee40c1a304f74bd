"""Retention policy repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from chronicle.audit.domain.retention_policy import RetentionPolicy


class RetentionPolicyRepository(ABC):
    """Repository interface for per-table retention policies."""

    @abstractmethod
    async def get_active(self) -> list[RetentionPolicy]:
        """Get all policies with ``is_active`` set."""
        pass

    @abstractmethod
    async def get_by_table(self, table_name: str) -> Optional[RetentionPolicy]:
        pass

    @abstractmethod
    async def save(self, policy: RetentionPolicy) -> RetentionPolicy:
        """Create or replace the policy for ``policy.table_name``."""
        pass

    @abstractmethod
    async def mark_cleaned(self, table_name: str, cleaned_at: datetime) -> None:
        """Stamp the time of the last successful cleanup."""
        pass
