"""Application context assembly."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from bizlog.audit.db import SqliteLogRecordStore
from bizlog.audit.store import InMemoryLogRecordStore, LogRecordStore
from bizlog.config import Settings, load_settings
from bizlog.diff.differ import ObjectDiffer
from bizlog.diff.renderer import DiffRenderer
from bizlog.identity import ContextOperatorProvider, OperatorProvider
from bizlog.logging_utils import configure_logging
from bizlog.record.assembler import RecordAssembler
from bizlog.runtime import OperationRuntime
from bizlog.specs.loader import load_specs
from bizlog.specs.registry import SpecRegistry
from bizlog.template.evaluator import ExpressionEvaluator
from bizlog.template.functions import ValueFunctionRegistry
from bizlog.template.resolver import TemplateResolver


@dataclass
class AppContext:
    """Process-wide collaborators, built once from settings."""

    settings: Settings
    store: LogRecordStore
    functions: ValueFunctionRegistry
    specs: SpecRegistry
    evaluator: ExpressionEvaluator
    resolver: TemplateResolver
    assembler: RecordAssembler
    runtime: OperationRuntime


def build_app_context(
    settings: Settings,
    *,
    store: LogRecordStore | None = None,
    functions: ValueFunctionRegistry | None = None,
    operator_provider: OperatorProvider | None = None,
) -> AppContext:
    """Wire an application context; explicit collaborators override settings."""
    if store is None:
        if settings.storage.backend == "sqlite":
            store = SqliteLogRecordStore(
                settings.storage.sqlite_path, wal=settings.storage.sqlite_wal
            )
        else:
            store = InMemoryLogRecordStore()
    functions = functions or ValueFunctionRegistry()
    specs = (
        load_specs(settings.record.specs_path)
        if settings.record.specs_path
        else SpecRegistry()
    )

    renderer = DiffRenderer(functions, settings.diff)
    evaluator = ExpressionEvaluator(functions, ObjectDiffer(), renderer)
    resolver = TemplateResolver(evaluator)
    assembler = RecordAssembler(update_action_type=settings.record.update_action_type)
    runtime = OperationRuntime(
        resolver,
        assembler,
        store,
        operator_provider or ContextOperatorProvider(),
        spec_registry=specs,
        enabled=settings.record.enabled,
    )
    return AppContext(
        settings=settings,
        store=store,
        functions=functions,
        specs=specs,
        evaluator=evaluator,
        resolver=resolver,
        assembler=assembler,
        runtime=runtime,
    )


@lru_cache(maxsize=1)
def get_app_context() -> AppContext:
    """Cached context built from ``load_settings()``; also configures logging."""
    configure_logging()
    return build_app_context(load_settings())
