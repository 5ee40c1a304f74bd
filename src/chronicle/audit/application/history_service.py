"""Read-only access to the audit history."""

from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from chronicle.audit.domain.audit_log import AuditRecord, AuditStatistic
from chronicle.audit.domain.constants import (
    DEFAULT_ACTOR_HISTORY_LIMIT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RECORD_HISTORY_LIMIT,
    MAX_PAGE_SIZE,
)
from chronicle.audit.domain.repositories.audit_log_repository import AuditLogRepository
from chronicle.audit.infrastructure.audit_log_repo_impl import AuditLogRepositoryImpl
from chronicle.database.database import SessionFactory
from chronicle.main.clock import as_utc
from chronicle.main.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class HistoryQueryService:
    """Queries over audit records for administrative and compliance surfaces.

    History is diagnostic, not load-bearing: every query returns an empty
    list on storage failure and logs the failure instead of raising.
    Results are ordered oldest first (newest last).
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        repository_factory: Callable[[AsyncSession], AuditLogRepository] = AuditLogRepositoryImpl,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.session_factory = session_factory
        self.repository_factory = repository_factory
        self.max_page_size = max_page_size

    def _page_size(self, limit: int) -> Optional[int]:
        if limit <= 0:
            return None
        return min(limit, self.max_page_size)

    async def _read(
        self,
        description: str,
        query: Callable[[AuditLogRepository], Awaitable[list[T]]],
        **extra,
    ) -> list[T]:
        try:
            async with self.session_factory() as session, session.begin():
                return await query(self.repository_factory(session))
        except Exception as e:
            logger.error(
                f"Failed to {description}: {type(e).__name__}: {e}",
                exc_info=True,
                extra=extra,
            )
            return []

    async def by_record(
        self,
        table_name: str,
        record_id: str,
        limit: int = DEFAULT_RECORD_HISTORY_LIMIT,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """All audit records for one logical entity."""
        page_size = self._page_size(limit)
        if page_size is None:
            return []

        return await self._read(
            "read record history",
            lambda repository: repository.get_by_record(
                table_name, record_id, limit=page_size, offset=max(offset, 0)
            ),
            table_name=table_name,
            record_id=record_id,
        )

    async def by_actor(
        self,
        actor_id: str,
        limit: int = DEFAULT_ACTOR_HISTORY_LIMIT,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """All audit records attributed to one actor, across every table."""
        page_size = self._page_size(limit)
        if page_size is None:
            return []

        return await self._read(
            "read actor history",
            lambda repository: repository.get_by_actor(
                actor_id, limit=page_size, offset=max(offset, 0)
            ),
            actor_id=actor_id,
        )

    async def by_time_range(
        self,
        start: datetime,
        end: datetime,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """Audit records created within ``[start, end]``."""
        page_size = self._page_size(limit)
        start, end = as_utc(start), as_utc(end)
        if page_size is None or start > end:
            return []

        return await self._read(
            "read audit history by time range",
            lambda repository: repository.get_by_time_range(
                start, end, limit=page_size, offset=max(offset, 0)
            ),
            start=start.isoformat(),
            end=end.isoformat(),
        )

    async def statistics(self, start: datetime, end: datetime) -> list[AuditStatistic]:
        """
        Count audit records created within ``[start, end]``.

        Returns:
            One entry per (table_name, operation), sorted by table then operation
        """
        start, end = as_utc(start), as_utc(end)
        if start > end:
            return []

        return await self._read(
            "read audit statistics",
            lambda repository: repository.get_statistics(start, end),
            start=start.isoformat(),
            end=end.isoformat(),
        )
