"""Template-driven audit logging for business operations.

Declare what an operation should log with :func:`log_record`, wrap it with
:meth:`OperationRuntime.intercept`, and every call produces
:class:`AuditRecord` values for the configured store.
"""

from bizlog.audit.models import AuditRecord
from bizlog.context import LogRecordContext, RuntimeContext
from bizlog.diff.node import DiffLogField, DiffNode, DiffState, diff_log_extra, diff_log_field
from bizlog.diff.renderer import DIFF_IS_NULL
from bizlog.domain.operations import MethodRef, OperationSpec
from bizlog.errors import AssemblyError, BizLogError, ConfigurationError, EvaluationError
from bizlog.identity import reset_current_operator, set_current_operator
from bizlog.runtime import OperationRuntime, log_record

__all__ = [
    "AssemblyError",
    "AuditRecord",
    "BizLogError",
    "ConfigurationError",
    "DIFF_IS_NULL",
    "DiffLogField",
    "DiffNode",
    "DiffState",
    "EvaluationError",
    "LogRecordContext",
    "MethodRef",
    "OperationRuntime",
    "OperationSpec",
    "RuntimeContext",
    "diff_log_extra",
    "diff_log_field",
    "log_record",
    "reset_current_operator",
    "set_current_operator",
]
