"""
Integration fixtures backed by a SQLite database file.

SQLite stands in for PostgreSQL here: the JSONB columns fall back to JSON
and timestamps come back naive, which the repositories treat as UTC.
"""

import pytest

from chronicle.audit.application.audit_record_builder import AuditRecordBuilder
from chronicle.audit.application.audit_service import AuditService
from chronicle.audit.application.audit_writer import AuditWriter
from chronicle.audit.application.history_service import HistoryQueryService
from chronicle.audit.application.retention_service import RetentionService
from chronicle.database.database import DatabaseSessionManager
from chronicle.database.tables import Base


@pytest.fixture
async def db(tmp_path):
    """Initialised session manager with an empty audit schema."""
    manager = DatabaseSessionManager()
    manager.init(f"sqlite+aiosqlite:///{tmp_path / 'audit.db'}")

    async with manager.connect() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield manager

    await manager.close()


@pytest.fixture
def audit_writer(db):
    return AuditWriter(session_factory=db.session, timeout_seconds=5)


@pytest.fixture
def audit_service(audit_writer):
    return AuditService(audit_writer, AuditRecordBuilder())


@pytest.fixture
def history_service(db):
    return HistoryQueryService(session_factory=db.session)


@pytest.fixture
def retention_service(db):
    return RetentionService(session_factory=db.session)
