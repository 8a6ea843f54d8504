from datetime import datetime, timezone

import pytest

from bizlog.audit.db import SqliteLogRecordStore
from bizlog.audit.models import AuditRecord
from bizlog.audit.store import InMemoryLogRecordStore
from bizlog.domain.operations import MethodRef

METHOD = MethodRef("shop.OrderService", "update")


def _record(biz_no="O-1", type="ORDER", **kwargs):
    values = dict(
        type=type,
        biz_no=biz_no,
        operator="alice",
        action=f"Updated {biz_no}",
        create_time=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        code_location=METHOD,
    )
    values.update(kwargs)
    return AuditRecord(**values)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "bizlog.db")


@pytest.fixture
def sqlite_store(db_path):
    store = SqliteLogRecordStore(db_path)
    yield store
    store.close()


def test_record_round_trip(sqlite_store):
    original = _record(sub_biz_no="L-1", extra="x", detail="d", action_type="UPDATE", fail=True)
    sqlite_store.record(original)

    [loaded] = sqlite_store.list_records()
    assert loaded == original


def test_optional_columns_default_to_empty(sqlite_store):
    sqlite_store.record(_record())

    row = sqlite_store.fetch_all("SELECT * FROM log_record", ())[0]
    assert row["fail"] == 0
    assert row["declaring_type"] == "shop.OrderService"
    assert row["create_time"] == "2024-05-01T12:00:00+00:00"
    assert sqlite_store.list_records()[0].sub_biz_no == ""


def test_batch_record_keeps_order(sqlite_store):
    sqlite_store.batch_record([_record("A"), _record("B"), _record("C")])
    assert [r.biz_no for r in sqlite_store.list_records()] == ["A", "B", "C"]


def test_batch_record_empty_is_noop(sqlite_store):
    sqlite_store.batch_record([])
    assert sqlite_store.list_records() == []


def test_list_records_filters(sqlite_store):
    sqlite_store.batch_record([_record("A"), _record("B"), _record("A", type="ITEM")])

    assert len(sqlite_store.list_records(biz_no="A")) == 2
    assert [r.type for r in sqlite_store.list_records(biz_no="A", type="ITEM")] == ["ITEM"]
    assert len(sqlite_store.list_records(limit=1)) == 1


def test_records_survive_reopen(db_path):
    store = SqliteLogRecordStore(db_path, wal=False)
    store.record(_record())
    store.close()
    store.close()

    reopened = SqliteLogRecordStore(db_path, wal=False)
    try:
        assert [r.biz_no for r in reopened.list_records()] == ["O-1"]
    finally:
        reopened.close()


def test_in_memory_store():
    store = InMemoryLogRecordStore()
    store.record(_record("A"))
    store.batch_record([_record("B"), _record("A", type="ITEM")])

    assert [r.biz_no for r in store.records] == ["A", "B", "A"]
    assert len(store.list_records(biz_no="A")) == 2
    assert len(store.list_records(type="ITEM")) == 1

    store.clear()
    assert store.records == []
