"""Persistence interface for finished audit records."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence

from bizlog.audit.models import AuditRecord


class LogRecordStore(ABC):
    """Receives finished records.

    Implementations must persist each record independently of any business
    transaction around the intercepted call, so failure records survive a
    rollback.
    """

    @abstractmethod
    def record(self, record: AuditRecord) -> None:
        """Persist one record."""

    @abstractmethod
    def batch_record(self, records: Sequence[AuditRecord]) -> None:
        """Persist records produced by one batch operation, in order."""


class InMemoryLogRecordStore(LogRecordStore):
    """Keeps records in a list. For tests and development."""

    def __init__(self) -> None:
        self._records: list[AuditRecord] = []
        self._lock = threading.Lock()

    def record(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    def batch_record(self, records: Sequence[AuditRecord]) -> None:
        with self._lock:
            self._records.extend(records)

    @property
    def records(self) -> list[AuditRecord]:
        with self._lock:
            return list(self._records)

    def list_records(
        self,
        *,
        biz_no: str | None = None,
        type: str | None = None,
    ) -> list[AuditRecord]:
        return [
            record
            for record in self.records
            if (biz_no is None or record.biz_no == biz_no)
            and (type is None or record.type == type)
        ]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
