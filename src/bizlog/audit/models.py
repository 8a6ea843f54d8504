"""Data model for finished audit records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from bizlog.domain.operations import MethodRef


@dataclass(frozen=True)
class AuditRecord:
    type: str
    biz_no: str
    operator: str
    action: str
    create_time: datetime
    code_location: MethodRef
    fail: bool = False
    sub_biz_no: str = ""
    extra: str = ""
    detail: str = ""
    action_type: str = ""

    @property
    def success(self) -> bool:
        return not self.fail
