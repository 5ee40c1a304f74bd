"""Persists audit records without ever failing the caller."""

import asyncio
from dataclasses import replace
from typing import Callable, Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from chronicle.audit.domain.audit_log import AuditRecord
from chronicle.audit.domain.constants import AUDIT_WRITE_TIMEOUT_SECONDS
from chronicle.audit.domain.repositories.audit_log_repository import AuditLogRepository
from chronicle.audit.infrastructure.audit_log_repo_impl import AuditLogRepositoryImpl
from chronicle.database.database import SessionFactory
from chronicle.main.logging import get_logger

logger = get_logger(__name__)


def with_non_decreasing_timestamps(records: Iterable[AuditRecord]) -> list[AuditRecord]:
    """Clamp ``created_at`` so it never goes backwards in insertion order."""
    ordered: list[AuditRecord] = []
    latest = None
    for record in records:
        if latest is not None and record.created_at < latest:
            record = replace(record, created_at=latest)
        latest = record.created_at
        ordered.append(record)
    return ordered


class AuditWriter:
    """Writes audit records, one per transaction or one batch per transaction.

    Every storage failure, timeouts included, is logged with the identity of
    the lost record(s) and reported as ``False``.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        repository_factory: Callable[[AsyncSession], AuditLogRepository] = AuditLogRepositoryImpl,
        timeout_seconds: float = AUDIT_WRITE_TIMEOUT_SECONDS,
    ):
        self.session_factory = session_factory
        self.repository_factory = repository_factory
        self.timeout_seconds = timeout_seconds

    async def _insert_one(self, record: AuditRecord) -> None:
        async with self.session_factory() as session, session.begin():
            await self.repository_factory(session).create(record)

    async def _insert_many(self, records: Sequence[AuditRecord]) -> None:
        async with self.session_factory() as session, session.begin():
            await self.repository_factory(session).create_many(records)

    async def write(self, record: AuditRecord) -> bool:
        try:
            await asyncio.wait_for(self._insert_one(record), timeout=self.timeout_seconds)
        except Exception as e:
            logger.error(
                f"Failed to write audit log for {record.table_name}.{record.record_id} "
                f"({record.operation.value}): {type(e).__name__}: {e}",
                exc_info=True,
                extra=record.log_extra(),
            )
            return False

        logger.debug("Audit log created", extra=record.log_extra())
        return True

    async def write_batch(self, records: Sequence[AuditRecord]) -> bool:
        """
        Write all records in a single statement and transaction.

        Returns:
            True when the batch committed (or was empty), False otherwise
        """
        if not records:
            return True

        records = with_non_decreasing_timestamps(records)

        try:
            await asyncio.wait_for(self._insert_many(records), timeout=self.timeout_seconds)
        except Exception as e:
            logger.error(
                f"Failed to write audit log batch of {len(records)} records: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
                extra={"records": [record.log_extra() for record in records]},
            )
            return False

        logger.info(f"Audit log batch created: {len(records)} logs")
        return True
