"""SQLAlchemy implementation of audit log repository."""

import time
from datetime import datetime
from typing import Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from chronicle.audit.domain.audit_log import AuditRecord, AuditStatistic
from chronicle.audit.domain.audit_source import AuditSource
from chronicle.audit.domain.operation import Operation
from chronicle.audit.domain.repositories.audit_log_repository import AuditLogRepository
from chronicle.database.tables.audit_log_table import AuditLog as AuditLogTable
from chronicle.main.clock import as_utc
from chronicle.main.logging import get_logger

logger = get_logger(__name__)


class AuditLogRepositoryImpl(AuditLogRepository):
    """SQLAlchemy implementation of audit log repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, table: AuditLogTable) -> AuditRecord:
        """Convert SQLAlchemy table to domain model."""
        return AuditRecord(
            id=table.id,
            table_name=table.table_name,
            record_id=table.record_id,
            operation=Operation(table.operation),
            created_at=as_utc(table.created_at),
            actor_id=table.actor_id,
            actor_email=table.actor_email,
            actor_role=table.actor_role,
            ip_address=table.ip_address,
            user_agent=table.user_agent,
            request_id=table.request_id,
            session_id=table.session_id,
            reason=table.reason,
            source=AuditSource(table.source),
            old_values=table.old_values,
            new_values=table.new_values,
            changed_fields=table.changed_fields,
        )

    def _to_row(self, audit_log: AuditRecord) -> dict:
        return {
            "id": audit_log.id,
            "table_name": audit_log.table_name,
            "record_id": audit_log.record_id,
            "operation": audit_log.operation.value,
            "actor_id": audit_log.actor_id,
            "actor_email": audit_log.actor_email,
            "actor_role": audit_log.actor_role,
            "old_values": audit_log.old_values,
            "new_values": audit_log.new_values,
            "changed_fields": audit_log.changed_fields,
            "ip_address": audit_log.ip_address,
            "user_agent": audit_log.user_agent,
            "request_id": audit_log.request_id,
            "session_id": audit_log.session_id,
            "reason": audit_log.reason,
            "source": audit_log.source.value,
            "created_at": audit_log.created_at,
        }

    async def create(self, audit_log: AuditRecord) -> None:
        """Insert a single audit log entry."""
        query = sa.insert(AuditLogTable).values(**self._to_row(audit_log))
        await self.session.execute(query)

    async def create_many(self, audit_logs: Sequence[AuditRecord]) -> None:
        """Insert several audit log entries as one bulk INSERT."""
        if not audit_logs:
            return

        await self.session.execute(
            sa.insert(AuditLogTable),
            [self._to_row(audit_log) for audit_log in audit_logs],
        )

    async def _fetch(self, query: sa.Select, label: str) -> list[AuditRecord]:
        query_start = time.time()
        results = await self.session.scalars(query)
        logs = [self._to_domain(result) for result in results]
        query_time = (time.time() - query_start) * 1000  # ms

        logger.debug(f"{label}: results={len(logs)}, query_time={query_time:.2f}ms")
        return logs

    def _paginate(self, query: sa.Select, limit: int, offset: int) -> sa.Select:
        # Oldest first, id breaks ties between identical timestamps
        return (
            query.order_by(AuditLogTable.created_at.asc(), AuditLogTable.id.asc())
            .limit(limit)
            .offset(offset)
        )

    async def get_by_record(
        self,
        table_name: str,
        record_id: str,
        limit: int,
        offset: int = 0,
    ) -> list[AuditRecord]:
        query = sa.select(AuditLogTable).where(
            sa.and_(
                AuditLogTable.table_name == table_name,
                AuditLogTable.record_id == record_id,
            )
        )
        return await self._fetch(
            self._paginate(query, limit, offset),
            f"get_by_record: table={table_name}, record_id={record_id}",
        )

    async def get_by_actor(
        self,
        actor_id: str,
        limit: int,
        offset: int = 0,
    ) -> list[AuditRecord]:
        query = sa.select(AuditLogTable).where(AuditLogTable.actor_id == actor_id)
        return await self._fetch(
            self._paginate(query, limit, offset),
            f"get_by_actor: actor_id={actor_id}",
        )

    async def get_by_time_range(
        self,
        from_date: datetime,
        to_date: datetime,
        limit: int,
        offset: int = 0,
    ) -> list[AuditRecord]:
        query = sa.select(AuditLogTable).where(
            AuditLogTable.created_at.between(from_date, to_date)
        )
        return await self._fetch(
            self._paginate(query, limit, offset),
            f"get_by_time_range: from={from_date.isoformat()}, to={to_date.isoformat()}",
        )

    async def get_statistics(
        self,
        from_date: datetime,
        to_date: datetime,
    ) -> list[AuditStatistic]:
        query = (
            sa.select(
                AuditLogTable.table_name,
                AuditLogTable.operation,
                sa.func.count().label("total"),
            )
            .where(AuditLogTable.created_at.between(from_date, to_date))
            .group_by(AuditLogTable.table_name, AuditLogTable.operation)
            .order_by(AuditLogTable.table_name, AuditLogTable.operation)
        )

        result = await self.session.execute(query)
        return [
            AuditStatistic(
                table_name=row.table_name,
                operation=Operation(row.operation),
                count=row.total,
            )
            for row in result
        ]

    async def delete_older_than(self, table_name: str, cutoff: datetime) -> int:
        """Hard delete entries of ``table_name`` created strictly before ``cutoff``."""
        query = sa.delete(AuditLogTable).where(
            sa.and_(
                AuditLogTable.table_name == table_name,
                AuditLogTable.created_at < cutoff,
            )
        )

        result = await self.session.execute(query)
        return result.rowcount or 0
