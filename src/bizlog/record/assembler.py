"""Turns resolved template values into audit records."""

from __future__ import annotations

from bizlog.audit.models import AuditRecord
from bizlog.diff.renderer import DIFF_IS_NULL
from bizlog.domain.operations import MethodRef, OperationSpec
from bizlog.errors import AssemblyError
from bizlog.template.resolver import ResolvedValues
from bizlog.utils.time import Clock, non_decreasing, utc_now


class RecordAssembler:
    """
    Builds records and decides which of them are emitted.

    A record is dropped when its condition does not end with "true", when its
    action text is empty, or when it is an update whose detail shows no diff.
    """

    def __init__(self, clock: Clock = utc_now, update_action_type: str = "UPDATE") -> None:
        self._clock = clock
        self._update_action_type = update_action_type

    def assemble(
        self,
        spec: OperationSpec,
        resolved: ResolvedValues,
        action: str,
        success: bool,
        external_operator: str | None,
        method: MethodRef,
    ) -> AuditRecord | None:
        if not self._condition_passed(spec, resolved, None):
            return None
        operator = self._operator(spec, resolved, external_operator, None)
        record = self._build(spec, resolved, action, success, operator, method, None, self._clock)
        if self._suppressed(record):
            return None
        return record

    def assemble_batch(
        self,
        spec: OperationSpec,
        resolved: ResolvedValues,
        action: str,
        success: bool,
        external_operator: str | None,
        method: MethodRef,
    ) -> list[AuditRecord]:
        """One record per batch element that passes the filters, in element order."""
        clock = non_decreasing(self._clock)
        records: list[AuditRecord] = []
        for index in range(resolved.batch_size):
            if not self._condition_passed(spec, resolved, index):
                continue
            operator = self._operator(spec, resolved, external_operator, index)
            record = self._build(spec, resolved, action, success, operator, method, index, clock)
            if self._suppressed(record):
                continue
            records.append(record)
        return records

    @staticmethod
    def _condition_passed(spec: OperationSpec, resolved: ResolvedValues, index: int | None) -> bool:
        if not spec.condition_expr:
            return True
        return resolved.get(spec.condition_expr, index).lower().endswith("true")

    @staticmethod
    def _operator(
        spec: OperationSpec,
        resolved: ResolvedValues,
        external_operator: str | None,
        index: int | None,
    ) -> str:
        if external_operator:
            return external_operator
        if not spec.operator_expr:
            raise AssemblyError("Operator is missing: no operator expression and no current operator")
        return resolved.get(spec.operator_expr, index)

    @staticmethod
    def _build(
        spec: OperationSpec,
        resolved: ResolvedValues,
        action: str,
        success: bool,
        operator: str,
        method: MethodRef,
        index: int | None,
        clock: Clock,
    ) -> AuditRecord:
        return AuditRecord(
            type=resolved.get(spec.type, index),
            biz_no=resolved.get(spec.biz_no_expr, index),
            sub_biz_no=resolved.get(spec.sub_biz_no_expr, index),
            operator=operator,
            extra=resolved.get(spec.extra_expr, index),
            action=resolved.get(action, index),
            detail=resolved.get(spec.detail_expr, index),
            action_type=spec.action_type,
            fail=not success,
            create_time=clock(),
            code_location=method,
        )

    def _suppressed(self, record: AuditRecord) -> bool:
        if not record.action:
            return True
        return (
            record.action_type.upper() == self._update_action_type.upper()
            and record.detail == DIFF_IS_NULL
        )
