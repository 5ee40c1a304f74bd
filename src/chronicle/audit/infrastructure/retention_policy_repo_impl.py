"""SQLAlchemy implementation of retention policy repository."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from chronicle.audit.domain.repositories.retention_policy_repository import (
    RetentionPolicyRepository,
)
from chronicle.audit.domain.retention_policy import RetentionPolicy
from chronicle.database.tables.audit_retention_policy_table import AuditRetentionPolicy
from chronicle.main.clock import as_utc


class RetentionPolicyRepositoryImpl(RetentionPolicyRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, table: AuditRetentionPolicy) -> RetentionPolicy:
        return RetentionPolicy(
            id=table.id,
            table_name=table.table_name,
            retention_days=table.retention_days,
            archive_before_delete=table.archive_before_delete,
            is_active=table.is_active,
            last_cleanup_at=as_utc(table.last_cleanup_at),
            created_at=as_utc(table.created_at),
            updated_at=as_utc(table.updated_at),
        )

    async def get_active(self) -> list[RetentionPolicy]:
        query = (
            sa.select(AuditRetentionPolicy)
            .where(AuditRetentionPolicy.is_active.is_(True))
            .order_by(AuditRetentionPolicy.table_name)
        )
        results = await self.session.scalars(query)
        return [self._to_domain(result) for result in results]

    async def get_by_table(self, table_name: str) -> Optional[RetentionPolicy]:
        query = sa.select(AuditRetentionPolicy).where(
            AuditRetentionPolicy.table_name == table_name
        )
        result = await self.session.scalar(query)

        if result is None:
            return None

        return self._to_domain(result)

    async def save(self, policy: RetentionPolicy) -> RetentionPolicy:
        values = dict(
            retention_days=policy.retention_days,
            archive_before_delete=policy.archive_before_delete,
            is_active=policy.is_active,
        )

        query = (
            sa.update(AuditRetentionPolicy)
            .where(AuditRetentionPolicy.table_name == policy.table_name)
            .values(**values)
            .returning(AuditRetentionPolicy)
        )
        result = await self.session.scalar(query)

        if result is None:
            # Create policy if it doesn't exist
            query = (
                sa.insert(AuditRetentionPolicy)
                .values(id=policy.id, table_name=policy.table_name, **values)
                .returning(AuditRetentionPolicy)
            )
            result = await self.session.scalar(query)

        return self._to_domain(result)

    async def mark_cleaned(self, table_name: str, cleaned_at: datetime) -> None:
        query = (
            sa.update(AuditRetentionPolicy)
            .where(AuditRetentionPolicy.table_name == table_name)
            .values(last_cleanup_at=cleaned_at)
        )
        await self.session.execute(query)
