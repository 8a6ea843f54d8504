from __future__ import annotations

from bizlog.identity import (
    ContextOperatorProvider,
    StaticOperatorProvider,
    get_current_operator,
    reset_current_operator,
    set_current_operator,
)


def test_context_operator_lifecycle() -> None:
    provider = ContextOperatorProvider()
    assert provider.current_operator_id() is None

    token = set_current_operator("u1")
    try:
        assert get_current_operator() == "u1"
        assert provider.current_operator_id() == "u1"
    finally:
        reset_current_operator(token)

    assert get_current_operator() is None


def test_blank_operator_is_absent() -> None:
    token = set_current_operator("  ")
    try:
        assert ContextOperatorProvider().current_operator_id() is None
    finally:
        reset_current_operator(token)


def test_static_operator_provider() -> None:
    assert StaticOperatorProvider("job").current_operator_id() == "job"
    assert StaticOperatorProvider(None).current_operator_id() is None
