"""Audit log repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from chronicle.audit.domain.audit_log import AuditRecord, AuditStatistic


class AuditLogRepository(ABC):
    """Repository interface for audit log persistence."""

    @abstractmethod
    async def create(self, audit_log: AuditRecord) -> None:
        """Insert a single audit log entry."""
        pass

    @abstractmethod
    async def create_many(self, audit_logs: Sequence[AuditRecord]) -> None:
        """Insert several audit log entries in one statement."""
        pass

    @abstractmethod
    async def get_by_record(
        self,
        table_name: str,
        record_id: str,
        limit: int,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """Get the history of one record, oldest first."""
        pass

    @abstractmethod
    async def get_by_actor(
        self,
        actor_id: str,
        limit: int,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """Get everything one actor changed across all tables, oldest first."""
        pass

    @abstractmethod
    async def get_by_time_range(
        self,
        from_date: datetime,
        to_date: datetime,
        limit: int,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """Get entries created within ``[from_date, to_date]``, oldest first."""
        pass

    @abstractmethod
    async def get_statistics(
        self,
        from_date: datetime,
        to_date: datetime,
    ) -> list[AuditStatistic]:
        """
        Count entries created within ``[from_date, to_date]``.

        Returns:
            One row per (table_name, operation) pair
        """
        pass

    @abstractmethod
    async def delete_older_than(self, table_name: str, cutoff: datetime) -> int:
        """
        Permanently delete entries of ``table_name`` created before ``cutoff``.

        This is a HARD delete - logs are permanently removed and cannot be recovered.

        Returns:
            Number of logs deleted
        """
        pass
