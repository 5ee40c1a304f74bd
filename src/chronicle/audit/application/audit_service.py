"""Audit logging service."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, TypeVar, Union

from chronicle.audit.application.audit_info import AuditInfo
from chronicle.audit.application.audit_record_builder import AuditRecordBuilder, ContextLike
from chronicle.audit.application.audit_writer import AuditWriter
from chronicle.audit.domain.audit_log import AuditRecord
from chronicle.audit.domain.operation import Operation
from chronicle.main.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class AuditService:
    """Runs mutating operations and records them in the audit log.

    Audit persistence is strictly subordinate to the operation it observes:
    the write runs on a detached task, its failures are logged and never
    reach the caller, and the caller never waits for it.
    """

    def __init__(
        self,
        writer: AuditWriter,
        builder: Optional[AuditRecordBuilder] = None,
    ):
        self.writer = writer
        self.builder = builder or AuditRecordBuilder()
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        """Number of audit writes that have been dispatched but not finished."""
        return len(self._pending)

    async def with_audit(
        self,
        operation: Callable[[], Union[Awaitable[T], T]],
        audit_info: AuditInfo,
    ) -> T:
        """
        Run ``operation`` and record it in the audit log.

        The audit record is dispatched whether the operation succeeds or
        raises. On failure the reason is extended with the error and the
        original exception is re-raised unchanged.

        Args:
            operation: Zero-argument callable; an awaitable result is awaited
            audit_info: Target, actor context and snapshots of the mutation

        Returns:
            Whatever ``operation`` returned
        """
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
        except BaseException as e:
            # Cancellation and interpreter exits are recorded too, then propagate
            self._dispatch(audit_info, error=e)
            raise

        self._dispatch(audit_info)
        return result

    def _dispatch(self, audit_info: AuditInfo, error: Optional[BaseException] = None) -> None:
        try:
            context = audit_info.context
            if error is not None:
                context = context.with_failure(error)
            record = self.builder.build(
                table_name=audit_info.table_name,
                record_id=audit_info.record_id,
                operation=audit_info.operation,
                context=context,
                old_values=audit_info.old_values,
                new_values=audit_info.new_values,
            )
            task = asyncio.get_running_loop().create_task(
                self.writer.write(record),
                name=f"audit:{record.table_name}:{record.record_id}",
            )
        except Exception:
            logger.exception(
                f"Failed to dispatch audit log for {audit_info.table_name}.{audit_info.record_id}",
                extra={
                    "table_name": audit_info.table_name,
                    "record_id": audit_info.record_id,
                    "operation": audit_info.operation.value,
                },
            )
            return

        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning(f"Audit write {task.get_name()} was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Audit write {task.get_name()} failed: {type(error).__name__}: {error}",
                exc_info=error,
            )

    async def drain(self) -> None:
        """Wait until every dispatched audit write has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def log(
        self,
        table_name: str,
        record_id: str,
        operation: Union[Operation, str],
        context: ContextLike = None,
        old_values: Optional[Mapping[str, Any]] = None,
        new_values: Optional[Mapping[str, Any]] = None,
    ) -> Optional[AuditRecord]:
        """
        Build and write an audit record, waiting for the write.

        Returns:
            The written record, or None if it could not be persisted

        Raises:
            AuditValidationError: If table_name, record_id or operation is malformed
        """
        record = self.builder.build(
            table_name=table_name,
            record_id=record_id,
            operation=operation,
            context=context,
            old_values=old_values,
            new_values=new_values,
        )
        written = await self.writer.write(record)
        return record if written else None

    async def log_batch(self, entries: Sequence[AuditInfo]) -> bool:
        """Build one record per entry and write them as a single batch."""
        records = [
            self.builder.build(
                table_name=entry.table_name,
                record_id=entry.record_id,
                operation=entry.operation,
                context=entry.context,
                old_values=entry.old_values,
                new_values=entry.new_values,
            )
            for entry in entries
        ]
        return await self.writer.write_batch(records)
