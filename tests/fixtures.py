import contextlib
from datetime import datetime, timezone

from chronicle.audit.domain.audit_context import AuditContext
from chronicle.audit.domain.audit_source import AuditSource

TEST_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

TEST_CONTEXT = AuditContext(
    actor_id="U1",
    actor_email="user@example.com",
    actor_role="admin",
    ip_address="10.0.0.1",
    user_agent="pytest",
    request_id="req-1",
    session_id="sess-1",
    source=AuditSource.API,
)


class FakeSession:
    """Stands in for an AsyncSession; only transactions are tracked."""

    def __init__(self):
        self.transactions = 0

    @contextlib.asynccontextmanager
    async def begin(self):
        self.transactions += 1
        yield self


def session_factory_for(session):
    @contextlib.asynccontextmanager
    async def factory():
        yield session

    return factory


def failing_session_factory(error: Exception):
    @contextlib.asynccontextmanager
    async def factory():
        raise error
        yield  # pragma: no cover

    return factory


def fixed_clock(moment: datetime = TEST_NOW):
    return lambda: moment
