"""Domain objects describing loggable operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from bizlog.errors import ConfigurationError


@dataclass(frozen=True)
class MethodRef:
    declaring_type: str
    method_name: str

    @property
    def key(self) -> str:
        return f"{self.declaring_type}.{self.method_name}"

    @classmethod
    def from_callable(cls, func: Callable[..., Any]) -> "MethodRef":
        """Build a reference from a function or method.

        ``OrderService.update`` defined in ``shop.orders`` gives
        ``MethodRef("shop.orders.OrderService", "update")``; a module level
        function uses the module name as its declaring type.
        """
        qualname = getattr(func, "__qualname__", func.__name__)
        owner, _, name = qualname.rpartition(".")
        owner = owner.replace(".<locals>", "")
        module = getattr(func, "__module__", None) or ""
        declaring_type = f"{module}.{owner}" if owner and module else (owner or module)
        return cls(declaring_type=declaring_type, method_name=name or func.__name__)


@dataclass(frozen=True)
class OperationSpec:
    """Declarative description of one loggable operation.

    Every ``*_expr`` field, ``type`` and both templates are template strings
    resolved against the call's runtime context. ``batch_collection_expr`` is
    a bare expression that must evaluate to a sequence.
    """

    success_template: str = ""
    fail_template: str = ""
    operator_expr: str = ""
    type: str = ""
    biz_no_expr: str = ""
    sub_biz_no_expr: str = ""
    extra_expr: str = ""
    detail_expr: str = ""
    condition_expr: str = ""
    is_batch: bool = False
    batch_collection_expr: str = ""
    action_type: str = ""

    def __post_init__(self) -> None:
        if not self.success_template.strip() and not self.fail_template.strip():
            raise ConfigurationError(
                "Invalid operation spec: one of success_template and fail_template must be set"
            )
        if self.is_batch and not self.batch_collection_expr.strip():
            raise ConfigurationError(
                "Invalid operation spec: batch_collection_expr is required when is_batch is set"
            )

    def action_template(self, success: bool) -> str:
        return self.success_template if success else self.fail_template

    def field_templates(self, action: str) -> list[str]:
        """Templates needed to build a record for ``action``, condition last."""
        templates = [
            self.type,
            self.biz_no_expr,
            self.sub_biz_no_expr,
            action,
            self.extra_expr,
            self.detail_expr,
        ]
        if self.operator_expr:
            templates.append(self.operator_expr)
        if self.condition_expr:
            templates.append(self.condition_expr)
        return templates
