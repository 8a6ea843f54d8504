"""Interception of business calls and emission of their audit records."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from bizlog.audit.store import LogRecordStore
from bizlog.context import LogRecordContext, RuntimeContext
from bizlog.domain.operations import MethodRef, OperationSpec
from bizlog.errors import AssemblyError
from bizlog.identity import OperatorProvider
from bizlog.record.assembler import RecordAssembler
from bizlog.specs.registry import SpecRegistry
from bizlog.template.resolver import TemplateResolver, build_expression_set

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SPECS_ATTRIBUTE = "__log_record_specs__"


def log_record(
    success: str = "",
    *,
    fail: str = "",
    operator: str = "",
    type: str = "",
    biz_no: str = "",
    sub_biz_no: str = "",
    extra: str = "",
    detail: str = "",
    condition: str = "",
    is_batch: bool = False,
    batch_collection: str = "",
    action_type: str = "",
) -> Callable[[F], F]:
    """Attach an operation spec to a function.

    The spec is validated immediately, so a malformed declaration fails at
    import time. Stacking the decorator attaches several specs; they are
    processed in declaration order (top first).
    """
    spec = OperationSpec(
        success_template=success,
        fail_template=fail,
        operator_expr=operator,
        type=type,
        biz_no_expr=biz_no,
        sub_biz_no_expr=sub_biz_no,
        extra_expr=extra,
        detail_expr=detail,
        condition_expr=condition,
        is_batch=is_batch,
        batch_collection_expr=batch_collection,
        action_type=action_type,
    )

    def decorator(func: F) -> F:
        attached: tuple[OperationSpec, ...] = getattr(func, SPECS_ATTRIBUTE, ())
        setattr(func, SPECS_ATTRIBUTE, (spec,) + attached)
        return func

    return decorator


def attached_specs(func: Callable[..., Any]) -> tuple[OperationSpec, ...]:
    return getattr(func, SPECS_ATTRIBUTE, ())


class OperationRuntime:
    """
    Runs intercepted calls and records what they did.

    Logging never changes the outcome of the call: the return value is passed
    through, a business exception is re-raised as is, and every failure inside
    template resolution, assembly or persistence is only logged.
    """

    def __init__(
        self,
        resolver: TemplateResolver,
        assembler: RecordAssembler,
        store: LogRecordStore,
        operator_provider: OperatorProvider,
        spec_registry: SpecRegistry | None = None,
        enabled: bool = True,
    ) -> None:
        self._resolver = resolver
        self._assembler = assembler
        self._store = store
        self._operator_provider = operator_provider
        self._spec_registry = spec_registry
        self._enabled = enabled

    def intercept(
        self,
        func: F | None = None,
        *,
        specs: Sequence[OperationSpec] | None = None,
    ) -> F | Callable[[F], F]:
        """Wrap ``func`` so its calls are logged. Usable bare or with arguments."""
        if func is None:
            return functools.partial(self.intercept, specs=specs)  # type: ignore[return-value]

        method = MethodRef.from_callable(func)
        resolved_specs = self._specs_for(func, method, specs)
        if not self._enabled or not resolved_specs:
            return func

        signature = inspect.signature(func)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                token = LogRecordContext.push_span()
                try:
                    # Off the loop: store writes block. to_thread carries the context over.
                    ctx = await asyncio.to_thread(
                        self._before, method, signature, resolved_specs, args, kwargs
                    )
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as exc:
                        await asyncio.to_thread(self._after, ctx, resolved_specs, None, exc)
                        raise
                    await asyncio.to_thread(self._after, ctx, resolved_specs, result, None)
                    return result
                finally:
                    LogRecordContext.pop_span(token)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            token = LogRecordContext.push_span()
            try:
                ctx = self._before(method, signature, resolved_specs, args, kwargs)
                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    self._after(ctx, resolved_specs, None, exc)
                    raise
                self._after(ctx, resolved_specs, result, None)
                return result
            finally:
                LogRecordContext.pop_span(token)

        return wrapper  # type: ignore[return-value]

    def _specs_for(
        self,
        func: Callable[..., Any],
        method: MethodRef,
        specs: Sequence[OperationSpec] | None,
    ) -> tuple[OperationSpec, ...]:
        if specs is not None:
            return tuple(specs)
        found = attached_specs(func)
        if self._spec_registry is not None:
            found = found + self._spec_registry.get(method)
        return found

    def _before(
        self,
        method: MethodRef,
        signature: inspect.Signature,
        specs: Sequence[OperationSpec],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> RuntimeContext:
        ctx = RuntimeContext(method=method, arguments=_bind_arguments(signature, args, kwargs))
        try:
            precomputed = self._resolver.resolve_before(specs, ctx)
        except Exception:
            logger.exception("Log record before-call functions failed for %s", method.key)
            return ctx
        return ctx.with_precomputed(precomputed)

    def _after(
        self,
        ctx: RuntimeContext,
        specs: Sequence[OperationSpec],
        result: Any,
        error: Exception | None,
    ) -> None:
        try:
            ctx = ctx.with_outcome(result, error, LogRecordContext.variables())
        except Exception:
            logger.exception("Log record context could not be built for %s", ctx.method.key)
            return
        for spec in specs:
            try:
                self._record(spec, ctx)
            except Exception:
                logger.exception("Log record failed for %s", ctx.method.key)

    def _record(self, spec: OperationSpec, ctx: RuntimeContext) -> None:
        action = spec.action_template(ctx.success)
        if not action:
            return

        external_operator: str | None = None
        if not spec.operator_expr:
            external_operator = self._operator_provider.current_operator_id()
            if not external_operator:
                raise AssemblyError(f"Operator is missing for {ctx.method.key}")

        templates = build_expression_set(spec, action)
        if spec.is_batch:
            resolved = self._resolver.resolve_batch(templates, ctx, spec.batch_collection_expr)
            records = self._assembler.assemble_batch(
                spec, resolved, action, ctx.success, external_operator, ctx.method
            )
            if records:
                self._store.batch_record(records)
            return

        resolved = self._resolver.resolve(templates, ctx)
        record = self._assembler.assemble(
            spec, resolved, action, ctx.success, external_operator, ctx.method
        )
        if record is not None:
            self._store.record(record)


def _bind_arguments(
    signature: inspect.Signature,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> dict[str, Any]:
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError:
        # The call itself will fail with the same error; expose what we have.
        return dict(kwargs)
    bound.apply_defaults()
    arguments = dict(bound.arguments)
    for name, param in signature.parameters.items():
        if param.kind is inspect.Parameter.VAR_KEYWORD and isinstance(arguments.get(name), dict):
            arguments.update(arguments.pop(name))
    return arguments
