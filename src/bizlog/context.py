"""Per-invocation runtime context and template variable spans."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextvars import ContextVar, Token
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from bizlog.domain.operations import MethodRef

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class RuntimeContext:
    """
    Immutable invocation-scoped bag handed to the template evaluator.

    ``precomputed`` holds before-call function results keyed by the
    function-call fragment (``{fn{expr}}``) they were produced from.
    """

    method: MethodRef
    arguments: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    return_value: Any = None
    error: BaseException | None = None
    precomputed: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    variables: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    batch_items: tuple[Any, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))
        object.__setattr__(self, "precomputed", MappingProxyType(dict(self.precomputed)))
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> str:
        return "" if self.error is None else str(self.error)

    def with_outcome(
        self,
        return_value: Any,
        error: BaseException | None,
        variables: Mapping[str, Any] | None = None,
    ) -> "RuntimeContext":
        """Return a post-call copy carrying the call's result or error."""
        return replace(
            self,
            return_value=return_value,
            error=error,
            variables=self.variables if variables is None else variables,
        )

    def with_precomputed(self, precomputed: Mapping[str, str]) -> "RuntimeContext":
        return replace(self, precomputed=precomputed)

    def with_batch_items(self, items: Sequence[Any]) -> "RuntimeContext":
        return replace(self, batch_items=tuple(items))

    def names(self, index: int | None = None) -> dict[str, Any]:
        """Names visible to template expressions.

        Span variables shadow arguments of the same name.
        """
        names: dict[str, Any] = dict(self.arguments)
        names.update(self.variables)
        names["_ret"] = self.return_value
        names["_errorMsg"] = self.error_message
        if index is not None:
            if self.batch_items is None:
                raise IndexError("Batch index requested without batch items")
            names["_item"] = self.batch_items[index]
            names["_index"] = index
        return names


# Stack of variable spans, innermost last.
_spans: ContextVar[tuple[dict[str, Any], ...]] = ContextVar("bizlog_spans", default=())


class LogRecordContext:
    """Variables that business code exposes to the templates of the current call."""

    @staticmethod
    def push_span() -> Token[tuple[dict[str, Any], ...]]:
        """Open an empty span and return the reset token."""
        return _spans.set(_spans.get() + ({},))

    @staticmethod
    def pop_span(token: Token[tuple[dict[str, Any], ...]]) -> None:
        _spans.reset(token)

    @staticmethod
    def put_variable(name: str, value: Any) -> None:
        spans = _spans.get()
        if not spans:
            raise RuntimeError("No log record span is open")
        spans[-1][name] = value

    @staticmethod
    def get_variable(name: str, default: Any = None) -> Any:
        spans = _spans.get()
        if not spans:
            return default
        return spans[-1].get(name, default)

    @staticmethod
    def variables() -> dict[str, Any]:
        """Copy of the innermost span."""
        spans = _spans.get()
        return dict(spans[-1]) if spans else {}
