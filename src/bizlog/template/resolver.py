"""Resolves the templates of an operation in one evaluation pass."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from bizlog.context import RuntimeContext
from bizlog.domain.operations import OperationSpec
from bizlog.errors import EvaluationError
from bizlog.template.evaluator import ExpressionEvaluator


class ExpressionSet(tuple):
    """Distinct, non-empty template strings, first occurrence order."""

    def __new__(cls, templates: Iterable[str] = ()) -> "ExpressionSet":
        return super().__new__(cls, dict.fromkeys(t for t in templates if t))


def build_expression_set(spec: OperationSpec, action: str) -> ExpressionSet:
    return ExpressionSet(spec.field_templates(action))


class ResolvedValues:
    """Template string to resolved text, or to one text per batch element.

    Templates share a key when they are identical, so a value is evaluated
    once however many fields use it. Empty or unknown templates read as "".
    """

    def __init__(
        self,
        values: Mapping[str, str] | None = None,
        batch_values: Mapping[str, Sequence[str]] | None = None,
        batch_size: int | None = None,
    ) -> None:
        self._values = dict(values or {})
        self._batch_values = {k: list(v) for k, v in (batch_values or {}).items()}
        self._batch_size = batch_size

    @property
    def is_batch(self) -> bool:
        return self._batch_size is not None

    @property
    def batch_size(self) -> int:
        return self._batch_size or 0

    def get(self, template: str, index: int | None = None) -> str:
        if not template:
            return ""
        if index is None:
            return self._values.get(template, "")
        values = self._batch_values.get(template)
        if values is None or index >= len(values):
            return ""
        return values[index]

    def __contains__(self, template: object) -> bool:
        return template in self._values or template in self._batch_values

    def __len__(self) -> int:
        return len(self._batch_values) if self.is_batch else len(self._values)

    def __repr__(self) -> str:
        if self.is_batch:
            return f"ResolvedValues(batch_size={self._batch_size}, {self._batch_values!r})"
        return f"ResolvedValues({self._values!r})"


class TemplateResolver:
    def __init__(self, evaluator: ExpressionEvaluator) -> None:
        self._evaluator = evaluator

    def resolve(self, templates: Iterable[str], ctx: RuntimeContext) -> ResolvedValues:
        values: dict[str, str] = {}
        for template in ExpressionSet(templates):
            values[template] = self._evaluator.evaluate(template, ctx)
        return ResolvedValues(values)

    def resolve_batch(
        self,
        templates: Iterable[str],
        ctx: RuntimeContext,
        collection_expr: str,
    ) -> ResolvedValues:
        """Evaluate every template once per element of ``collection_expr``."""
        items = self._collection(collection_expr, ctx)
        batch_ctx = ctx.with_batch_items(items)
        expression_set = ExpressionSet(templates)
        batch_values: dict[str, list[str]] = {template: [] for template in expression_set}
        for index in range(len(items)):
            for template in expression_set:
                batch_values[template].append(
                    self._evaluator.evaluate(template, batch_ctx, index)
                )
        return ResolvedValues(batch_values=batch_values, batch_size=len(items))

    def resolve_before(
        self,
        specs: Iterable[OperationSpec],
        ctx: RuntimeContext,
    ) -> dict[str, str]:
        """Before-call function results of the success path of ``specs``.

        Fail templates are skipped: the call has not failed yet. Batch specs
        are skipped as their elements are only known after the call.
        """
        precomputed: dict[str, str] = {}
        templates = ExpressionSet(
            template
            for spec in specs
            if not spec.is_batch
            for template in spec.field_templates(spec.success_template)
        )
        for template in templates:
            self._evaluator.evaluate_before_functions(template, ctx, precomputed)
        return precomputed

    def _collection(self, collection_expr: str, ctx: RuntimeContext) -> list[Any]:
        value = self._evaluator.evaluate_object(collection_expr, ctx)
        if value is None:
            return []
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
            raise EvaluationError(
                collection_expr,
                f"batch collection must be a sequence, got {type(value).__name__}",
            )
        return list(value)
