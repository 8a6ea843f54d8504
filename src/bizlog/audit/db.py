"""SQLite persistence for audit records."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path

from bizlog.audit.models import AuditRecord
from bizlog.audit.store import LogRecordStore
from bizlog.domain.operations import MethodRef

_SqlValue = str | bytes | int | float | None
_SqlParams = Sequence[_SqlValue] | Mapping[str, _SqlValue]

_INSERT_RECORD = """
    INSERT INTO log_record (
        type, biz_no, sub_biz_no, operator, action, detail, extra,
        action_type, fail, create_time, declaring_type, method_name
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class SqliteLogRecordStore(LogRecordStore):
    """Stores records on a dedicated connection.

    Every write commits immediately, so records never share a transaction with
    the caller's own database work.
    """

    def __init__(self, path: str, wal: bool = True) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._closed = False
        if wal:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS log_record (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                type TEXT NOT NULL,
                biz_no TEXT NOT NULL,
                sub_biz_no TEXT,
                operator TEXT NOT NULL,
                action TEXT NOT NULL,
                detail TEXT,
                extra TEXT,
                action_type TEXT,
                fail INTEGER NOT NULL,
                create_time TEXT NOT NULL,
                declaring_type TEXT NOT NULL,
                method_name TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_log_record_type_biz_no
                ON log_record(type, biz_no);
            CREATE INDEX IF NOT EXISTS idx_log_record_create_time
                ON log_record(create_time);
            """
        )
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True

    def fetch_all(self, query: str, params: _SqlParams) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(query, params).fetchall()

    def record(self, record: AuditRecord) -> None:
        with self._lock:
            self._conn.execute(_INSERT_RECORD, _record_params(record))
            self._conn.commit()

    def batch_record(self, records: Sequence[AuditRecord]) -> None:
        if not records:
            return
        with self._lock:
            self._conn.executemany(_INSERT_RECORD, [_record_params(r) for r in records])
            self._conn.commit()

    def list_records(
        self,
        *,
        biz_no: str | None = None,
        type: str | None = None,
        limit: int = 100,
    ) -> list[AuditRecord]:
        """Records matching the filters, in insertion order."""
        clauses: list[str] = []
        params: list[_SqlValue] = []
        if type is not None:
            clauses.append("type = ?")
            params.append(type)
        if biz_no is not None:
            clauses.append("biz_no = ?")
            params.append(biz_no)
        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
        params.append(limit)
        rows = self.fetch_all(f"SELECT * FROM log_record {where}ORDER BY id LIMIT ?", params)
        return [_row_to_record(row) for row in rows]


def _record_params(record: AuditRecord) -> tuple[_SqlValue, ...]:
    return (
        record.type,
        record.biz_no,
        record.sub_biz_no,
        record.operator,
        record.action,
        record.detail,
        record.extra,
        record.action_type,
        int(record.fail),
        record.create_time.isoformat(),
        record.code_location.declaring_type,
        record.code_location.method_name,
    )


def _row_to_record(row: sqlite3.Row) -> AuditRecord:
    return AuditRecord(
        type=row["type"],
        biz_no=row["biz_no"],
        sub_biz_no=row["sub_biz_no"] or "",
        operator=row["operator"],
        action=row["action"],
        detail=row["detail"] or "",
        extra=row["extra"] or "",
        action_type=row["action_type"] or "",
        fail=bool(row["fail"]),
        create_time=datetime.fromisoformat(row["create_time"]),
        code_location=MethodRef(row["declaring_type"], row["method_name"]),
    )
