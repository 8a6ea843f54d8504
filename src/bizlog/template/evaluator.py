"""Template evaluation backed by simpleeval."""

from __future__ import annotations

from typing import Any

from simpleeval import EvalWithCompoundTypes

from bizlog.context import RuntimeContext
from bizlog.diff.differ import ObjectDiffer
from bizlog.diff.renderer import DiffRenderer
from bizlog.errors import EvaluationError
from bizlog.template.functions import DIFF_FUNCTION_NAME, ValueFunctionRegistry
from bizlog.template.parser import Fragment, parse_fragments

# Context variable holding the "before" object for single-argument diffs.
OLD_OBJECT_VARIABLE = "_oldObj"


class ExpressionEvaluator:
    """Resolves ``{fn{expr}}`` templates against a runtime context.

    Expressions are evaluated with simpleeval, so only a safe subset of
    Python is available: names, attribute and item access, comparisons,
    arithmetic, literals and the whitelisted helper functions below.
    """

    SAFE_FUNCTIONS = {
        "len": len,
        "abs": abs,
        "min": min,
        "max": max,
        "lower": lambda s: s.lower() if isinstance(s, str) else s,
        "upper": lambda s: s.upper() if isinstance(s, str) else s,
        "int": int,
        "float": float,
        "str": str,
        "bool": bool,
    }

    def __init__(
        self,
        registry: ValueFunctionRegistry,
        differ: ObjectDiffer | None = None,
        renderer: DiffRenderer | None = None,
    ) -> None:
        self._registry = registry
        self._differ = differ or ObjectDiffer()
        self._renderer = renderer or DiffRenderer(registry)

    def evaluate(self, template: str, ctx: RuntimeContext, index: int | None = None) -> str:
        """Substitute every fragment of ``template``; literals come back unchanged."""
        fragments = parse_fragments(template)
        if not fragments:
            return template
        names = self._names(template, ctx, index)
        parts: list[str] = []
        position = 0
        for fragment in fragments:
            parts.append(template[position:fragment.start])
            parts.append(self._fragment_value(template, fragment, ctx, names, index))
            position = fragment.end
        parts.append(template[position:])
        return "".join(parts)

    def evaluate_object(self, expression: str, ctx: RuntimeContext) -> Any:
        """Raw value of a bare expression; ``{{expr}}`` is unwrapped first."""
        fragments = parse_fragments(expression)
        if (
            len(fragments) == 1
            and fragments[0].text == expression.strip()
            and not fragments[0].function_name
        ):
            expression = fragments[0].expression
        return self._eval(expression, expression, self._names(expression, ctx, None))

    def evaluate_before_functions(
        self,
        template: str,
        ctx: RuntimeContext,
        results: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Run the before-call functions of ``template``, keyed by fragment text.

        Fragments already present in ``results`` are not evaluated again.
        """
        results = {} if results is None else results
        fragments = [
            fragment
            for fragment in parse_fragments(template)
            if self._registry.is_before_function(fragment.function_name)
            and fragment.text not in results
        ]
        if not fragments:
            return results
        names = self._names(template, ctx, None)
        for fragment in fragments:
            if fragment.text in results:
                continue
            value = self._eval(template, fragment.expression, names)
            results[fragment.text] = self._registry.apply(fragment.function_name, value)
        return results

    def _names(self, template: str, ctx: RuntimeContext, index: int | None) -> dict[str, Any]:
        try:
            return ctx.names(index)
        except IndexError as exc:
            raise EvaluationError(template, str(exc)) from exc

    def _fragment_value(
        self,
        template: str,
        fragment: Fragment,
        ctx: RuntimeContext,
        names: dict[str, Any],
        index: int | None,
    ) -> str:
        function_name = fragment.function_name
        if function_name == DIFF_FUNCTION_NAME:
            return self._diff_value(template, fragment, names)
        if function_name and index is None and fragment.text in ctx.precomputed:
            return ctx.precomputed[fragment.text]
        value = self._eval(template, fragment.expression, names)
        if not function_name:
            return "" if value is None else str(value)
        try:
            return self._registry.apply(function_name, value)
        except Exception as exc:
            raise EvaluationError(
                template, f"value function {function_name} failed: {exc}"
            ) from exc

    def _diff_value(self, template: str, fragment: Fragment, names: dict[str, Any]) -> str:
        value = self._eval(template, fragment.expression, names)
        if isinstance(value, tuple) and len(value) == 2:
            before, after = value
        else:
            before, after = names.get(OLD_OBJECT_VARIABLE), value
        try:
            diff = self._differ.compare(before, after)
            return self._renderer.render(diff, before, after)
        except Exception as exc:
            raise EvaluationError(template, f"diff rendering failed: {exc}") from exc

    def _eval(self, template: str, expression: str, names: dict[str, Any]) -> Any:
        if not expression:
            raise EvaluationError(template, "empty expression")
        evaluator = EvalWithCompoundTypes(names=names, functions=self.SAFE_FUNCTIONS)
        try:
            return evaluator.eval(expression)
        except Exception as exc:
            raise EvaluationError(template, f"{type(exc).__name__}: {exc}") from exc
