"""Integration tests for the SQLAlchemy audit log repository."""

from datetime import timedelta
from uuid import UUID

import pytest
import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

from chronicle.audit.application.audit_record_builder import AuditRecordBuilder
from chronicle.audit.domain.audit_source import AuditSource
from chronicle.audit.domain.operation import Operation
from chronicle.audit.infrastructure.audit_log_repo_impl import AuditLogRepositoryImpl
from chronicle.database.tables.audit_log_table import AuditLog
from tests.fixtures import TEST_CONTEXT, TEST_NOW, fixed_clock


def build(record_id, operation="UPDATE", at=TEST_NOW, table_name="reservations", **kwargs):
    return AuditRecordBuilder(clock=fixed_clock(at)).build(
        table_name, record_id, operation, **kwargs
    )


async def store(db, *records):
    async with db.session() as session, session.begin():
        await AuditLogRepositoryImpl(session).create_many(records)


async def query(db, method, *args, **kwargs):
    async with db.session() as session, session.begin():
        return await getattr(AuditLogRepositoryImpl(session), method)(*args, **kwargs)


@pytest.mark.asyncio
async def test_create_and_read_back_every_field(db):
    record = build(
        "R1",
        context=TEST_CONTEXT,
        old_values={"status": "pending", "amount": 10.5},
        new_values={"status": "success", "amount": 10.5, "tags": ["vip"]},
    )

    async with db.session() as session, session.begin():
        await AuditLogRepositoryImpl(session).create(record)

    [stored] = await query(db, "get_by_record", "reservations", "R1", limit=10)

    assert stored == record
    assert stored.created_at.tzinfo is not None
    assert stored.source == AuditSource.API
    assert stored.changed_fields == ["status", "tags"]


@pytest.mark.asyncio
async def test_absent_snapshots_are_stored_as_null(db):
    await store(db, build("R1", operation="INSERT", new_values={"status": "pending"}))

    [stored] = await query(db, "get_by_record", "reservations", "R1", limit=10)

    assert stored.old_values is None
    assert stored.changed_fields is None
    assert stored.new_values == {"status": "pending"}


@pytest.mark.asyncio
async def test_history_is_ordered_oldest_first(db):
    await store(
        db,
        build("R1", operation="UPDATE", at=TEST_NOW),
        build("R1", operation="INSERT", at=TEST_NOW - timedelta(minutes=5)),
        build("R1", operation="DELETE", at=TEST_NOW + timedelta(minutes=5)),
    )

    history = await query(db, "get_by_record", "reservations", "R1", limit=10)

    assert [record.operation for record in history] == [
        Operation.INSERT,
        Operation.UPDATE,
        Operation.DELETE,
    ]


@pytest.mark.asyncio
async def test_identical_timestamps_are_ordered_by_id(db):
    ids = [UUID(int=i) for i in (3, 1, 2)]
    records = [
        AuditRecordBuilder(clock=fixed_clock(), id_factory=lambda value=value: value).build(
            "reservations", "R1", "UPDATE"
        )
        for value in ids
    ]
    await store(db, *records)

    history = await query(db, "get_by_record", "reservations", "R1", limit=10)

    assert [record.id for record in history] == sorted(ids)


@pytest.mark.asyncio
async def test_limit_and_offset(db):
    await store(
        db, *[build("R1", at=TEST_NOW + timedelta(seconds=i)) for i in range(5)]
    )

    page = await query(db, "get_by_record", "reservations", "R1", limit=2, offset=2)

    assert [record.created_at for record in page] == [
        TEST_NOW + timedelta(seconds=2),
        TEST_NOW + timedelta(seconds=3),
    ]


@pytest.mark.asyncio
async def test_record_history_is_scoped_to_table_and_record(db):
    await store(
        db,
        build("R1"),
        build("R2"),
        build("R1", table_name="payments"),
    )

    history = await query(db, "get_by_record", "reservations", "R1", limit=10)

    assert len(history) == 1
    assert history[0].table_name == "reservations"
    assert history[0].record_id == "R1"


@pytest.mark.asyncio
async def test_actor_history_spans_tables(db):
    await store(
        db,
        build("R1", context={"actor_id": "U1"}),
        build("P1", table_name="payments", context={"actor_id": "U1"}),
        build("R2", context={"actor_id": "U2"}),
    )

    history = await query(db, "get_by_actor", "U1", limit=10)

    assert {(record.table_name, record.record_id) for record in history} == {
        ("reservations", "R1"),
        ("payments", "P1"),
    }


@pytest.mark.asyncio
async def test_time_range_is_inclusive(db):
    await store(
        db,
        build("R1", at=TEST_NOW - timedelta(hours=2)),
        build("R2", at=TEST_NOW - timedelta(hours=1)),
        build("R3", at=TEST_NOW),
    )

    records = await query(
        db, "get_by_time_range", TEST_NOW - timedelta(hours=1), TEST_NOW, limit=10
    )

    assert [record.record_id for record in records] == ["R2", "R3"]


@pytest.mark.asyncio
async def test_statistics_group_by_table_and_operation(db):
    await store(
        db,
        build("R1", operation="INSERT"),
        build("R2", operation="INSERT"),
        build("R1", operation="UPDATE"),
        build("P1", operation="DELETE", table_name="payments"),
        build("R9", operation="INSERT", at=TEST_NOW - timedelta(days=30)),
    )

    stats = await query(
        db, "get_statistics", TEST_NOW - timedelta(days=1), TEST_NOW + timedelta(days=1)
    )

    assert [(s.table_name, s.operation, s.count) for s in stats] == [
        ("payments", Operation.DELETE, 1),
        ("reservations", Operation.INSERT, 2),
        ("reservations", Operation.UPDATE, 1),
    ]


@pytest.mark.asyncio
async def test_delete_older_than_is_strict_and_scoped(db):
    await store(
        db,
        build("R1", at=TEST_NOW - timedelta(days=2)),
        build("R2", at=TEST_NOW - timedelta(days=1)),
        build("R3", at=TEST_NOW),
        build("P1", table_name="payments", at=TEST_NOW - timedelta(days=2)),
    )

    deleted = await query(
        db, "delete_older_than", "reservations", TEST_NOW - timedelta(days=1)
    )

    assert deleted == 1
    remaining = await query(db, "get_by_time_range", TEST_NOW - timedelta(days=3), TEST_NOW, limit=10)
    assert sorted(record.record_id for record in remaining) == ["P1", "R2", "R3"]


@pytest.mark.parametrize(
    "column,value", [("operation", "MERGE"), ("source", "carrier-pigeon")]
)
@pytest.mark.asyncio
async def test_table_rejects_values_outside_the_allowed_sets(db, column, value):
    row = {"table_name": "reservations", "record_id": "R1", "operation": "INSERT"}
    row[column] = value

    with pytest.raises(IntegrityError):
        async with db.session() as session, session.begin():
            await session.execute(sa.insert(AuditLog).values(**row))


def test_table_declares_operation_and_source_checks():
    names = {constraint.name for constraint in AuditLog.__table__.constraints}

    assert {"audit_logs_operation_check", "audit_logs_source_check"} <= names
