from __future__ import annotations

import pytest

from bizlog import config
from bizlog.audit.store import InMemoryLogRecordStore
from bizlog.identity import StaticOperatorProvider
from bizlog.record.assembler import RecordAssembler
from bizlog.runtime import OperationRuntime
from bizlog.template.evaluator import ExpressionEvaluator
from bizlog.template.functions import ValueFunctionRegistry
from bizlog.template.resolver import TemplateResolver


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep a developer's .env out of unit tests.
    monkeypatch.setattr(config, "load_dotenv", lambda **_: None)
    config._load_settings_cached.cache_clear()
    yield
    config._load_settings_cached.cache_clear()


@pytest.fixture
def registry() -> ValueFunctionRegistry:
    return ValueFunctionRegistry()


@pytest.fixture
def evaluator(registry: ValueFunctionRegistry) -> ExpressionEvaluator:
    return ExpressionEvaluator(registry)


@pytest.fixture
def resolver(evaluator: ExpressionEvaluator) -> TemplateResolver:
    return TemplateResolver(evaluator)


@pytest.fixture
def store() -> InMemoryLogRecordStore:
    return InMemoryLogRecordStore()


@pytest.fixture
def runtime(resolver: TemplateResolver, store: InMemoryLogRecordStore) -> OperationRuntime:
    return OperationRuntime(
        resolver,
        RecordAssembler(),
        store,
        StaticOperatorProvider("alice"),
    )
