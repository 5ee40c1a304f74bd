from dependency_injector import containers, providers

from chronicle.audit.application.audit_record_builder import AuditRecordBuilder
from chronicle.audit.application.audit_service import AuditService
from chronicle.audit.application.audit_writer import AuditWriter
from chronicle.audit.application.history_service import HistoryQueryService
from chronicle.audit.application.retention_service import RetentionService
from chronicle.main.config import Settings


class Container(containers.DeclarativeContainer):
    settings = providers.Dependency(instance_of=Settings)
    # Callable returning an async context manager around an AsyncSession,
    # typically ``sessionmanager.session``
    session_factory = providers.Dependency()
    archiver = providers.Object(None)

    audit_record_builder = providers.Factory(AuditRecordBuilder)
    audit_writer = providers.Factory(
        AuditWriter,
        session_factory=session_factory,
        timeout_seconds=settings.provided.audit_write_timeout_seconds,
    )

    # Holds references to in-flight audit writes, so there is one per process
    audit_service = providers.Singleton(
        AuditService,
        writer=audit_writer,
        builder=audit_record_builder,
    )

    history_query_service = providers.Factory(
        HistoryQueryService,
        session_factory=session_factory,
        max_page_size=settings.provided.audit_max_page_size,
    )

    retention_service = providers.Factory(
        RetentionService,
        session_factory=session_factory,
        archiver=archiver,
        default_retention_days=settings.provided.default_retention_days,
    )
