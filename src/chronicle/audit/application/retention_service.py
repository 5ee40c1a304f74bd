"""Retention policy service for audit logs."""

from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from chronicle.audit.domain.constants import DEFAULT_RETENTION_DAYS, MAX_RETENTION_DAYS
from chronicle.audit.domain.repositories.audit_log_repository import AuditLogRepository
from chronicle.audit.domain.repositories.retention_policy_repository import (
    RetentionPolicyRepository,
)
from chronicle.audit.domain.retention_policy import RetentionPolicy
from chronicle.audit.infrastructure.audit_log_repo_impl import AuditLogRepositoryImpl
from chronicle.audit.infrastructure.retention_policy_repo_impl import (
    RetentionPolicyRepositoryImpl,
)
from chronicle.database.database import SessionFactory
from chronicle.main.clock import utcnow
from chronicle.main.logging import get_logger

logger = get_logger(__name__)


class RetentionArchiver(Protocol):
    """Copies audit records somewhere durable before they are deleted."""

    async def archive(self, table_name: str, cutoff: datetime) -> None: ...


class RetentionService:
    """Deletes audit records older than each table's retention window.

    Deleting everything before a cutoff is idempotent and commutative, so
    overlapping runs for the same table are safe (if wasteful). Failures are
    logged and reported as zero deleted records; nothing is raised to the
    scheduler.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        audit_repository_factory: Callable[[AsyncSession], AuditLogRepository] = AuditLogRepositoryImpl,
        policy_repository_factory: Callable[
            [AsyncSession], RetentionPolicyRepository
        ] = RetentionPolicyRepositoryImpl,
        archiver: Optional[RetentionArchiver] = None,
        clock: Callable[[], datetime] = utcnow,
        default_retention_days: int = DEFAULT_RETENTION_DAYS,
    ):
        self.session_factory = session_factory
        self.audit_repository_factory = audit_repository_factory
        self.policy_repository_factory = policy_repository_factory
        self.archiver = archiver
        self.clock = clock
        self.default_retention_days = default_retention_days

    def cutoff_for(self, retention_days: int) -> datetime:
        return self.clock() - timedelta(days=retention_days)

    async def _sweep(self, table_name: str, cutoff: datetime, stamp_policy: bool) -> int:
        async with self.session_factory() as session, session.begin():
            deleted = await self.audit_repository_factory(session).delete_older_than(
                table_name, cutoff
            )
            if stamp_policy:
                await self.policy_repository_factory(session).mark_cleaned(
                    table_name, self.clock()
                )
        return deleted

    async def cleanup(self, table_name: str, retention_days: int) -> int:
        """
        Permanently delete audit records of ``table_name`` older than ``retention_days``.

        Records with a creation timestamp strictly before ``now - retention_days``
        are deleted. Running it again deletes nothing more.

        Returns:
            Number of records deleted (0 on failure)
        """
        if retention_days < 0:
            logger.error(
                f"Refusing audit log cleanup for {table_name}: negative retention_days={retention_days}",
                extra={"table_name": table_name},
            )
            return 0

        cutoff = self.cutoff_for(retention_days)
        try:
            deleted = await self._sweep(table_name, cutoff, stamp_policy=False)
        except Exception as e:
            logger.error(
                f"Failed to clean up audit logs for {table_name}: {type(e).__name__}: {e}",
                exc_info=True,
                extra={"table_name": table_name, "cutoff": cutoff.isoformat()},
            )
            return 0

        logger.info(
            f"Audit log cleanup for {table_name} completed: {deleted} logs deleted",
            extra={"table_name": table_name, "cutoff": cutoff.isoformat()},
        )
        return deleted

    async def _apply(self, policy: RetentionPolicy) -> int:
        if not policy.is_active:
            logger.debug(f"Skipping inactive retention policy for {policy.table_name}")
            return 0

        cutoff = self.cutoff_for(policy.retention_days)

        if policy.archive_before_delete:
            if self.archiver is None:
                logger.debug(
                    f"Retention policy for {policy.table_name} requests archiving, "
                    f"but no archiver is configured"
                )
            else:
                try:
                    await self.archiver.archive(policy.table_name, cutoff)
                except Exception as e:
                    # Records are only deleted once archived
                    logger.error(
                        f"Archiving audit logs for {policy.table_name} failed, skipping cleanup: "
                        f"{type(e).__name__}: {e}",
                        exc_info=True,
                        extra={"table_name": policy.table_name},
                    )
                    return 0

        try:
            deleted = await self._sweep(policy.table_name, cutoff, stamp_policy=True)
        except Exception as e:
            logger.error(
                f"Failed to apply retention policy for {policy.table_name}: {type(e).__name__}: {e}",
                exc_info=True,
                extra={"table_name": policy.table_name, "cutoff": cutoff.isoformat()},
            )
            return 0

        logger.info(
            f"Retention policy for {policy.table_name} applied: {deleted} logs deleted",
            extra={
                "table_name": policy.table_name,
                "retention_days": policy.retention_days,
            },
        )
        return deleted

    async def apply_policy(self, table_name: str) -> int:
        """Apply the stored retention policy of one table."""
        try:
            async with self.session_factory() as session, session.begin():
                policy = await self.policy_repository_factory(session).get_by_table(table_name)
        except Exception as e:
            logger.error(
                f"Failed to load retention policy for {table_name}: {type(e).__name__}: {e}",
                exc_info=True,
                extra={"table_name": table_name},
            )
            return 0

        if policy is None:
            logger.debug(f"No retention policy for {table_name}")
            return 0

        return await self._apply(policy)

    async def apply_policies(self) -> dict[str, int]:
        """
        Apply every active retention policy.

        Each table is swept in its own transaction, so one table's failure
        never rolls back another's deletion.

        Returns:
            Number of deleted records per table
        """
        try:
            async with self.session_factory() as session, session.begin():
                policies = await self.policy_repository_factory(session).get_active()
        except Exception as e:
            logger.error(
                f"Failed to load retention policies: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return {}

        logger.info(f"Starting audit log retention purge for {len(policies)} tables")

        purge_stats: dict[str, int] = {}
        for policy in policies:
            purge_stats[policy.table_name] = await self._apply(policy)

        return purge_stats

    async def update_policy(
        self,
        table_name: str,
        retention_days: Optional[int] = None,
        archive_before_delete: bool = True,
        is_active: bool = True,
    ) -> RetentionPolicy:
        """
        Create or update the retention policy of a table.

        Args:
            table_name: Audited table the policy applies to
            retention_days: Days to keep audit records (default from settings)
            archive_before_delete: Ask the archiver to copy records before deletion
            is_active: Whether scheduled cleanups apply the policy

        Returns:
            The stored policy

        Raises:
            ValueError: If retention_days is out of the valid range
        """
        if retention_days is None:
            retention_days = self.default_retention_days
        if retention_days < 0:
            raise ValueError("Retention period cannot be negative")
        if retention_days > MAX_RETENTION_DAYS:
            raise ValueError(f"Maximum retention period is {MAX_RETENTION_DAYS} days (7 years)")

        policy = RetentionPolicy(
            id=uuid4(),
            table_name=table_name,
            retention_days=retention_days,
            archive_before_delete=archive_before_delete,
            is_active=is_active,
        )

        async with self.session_factory() as session, session.begin():
            return await self.policy_repository_factory(session).save(policy)
