"""Operator identity collaborator."""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Protocol


class OperatorProvider(Protocol):
    def current_operator_id(self) -> str | None:
        """Return the operator of the current call, or None when unknown."""
        ...


_current_operator: ContextVar[str | None] = ContextVar(
    "bizlog_current_operator",
    default=None,
)


def set_current_operator(operator_id: str | None) -> Token[str | None]:
    """Set operator and return reset token."""
    return _current_operator.set(operator_id)


def reset_current_operator(token: Token[str | None]) -> None:
    """Reset operator using token from set_current_operator()."""
    _current_operator.reset(token)


def get_current_operator() -> str | None:
    return _current_operator.get()


class ContextOperatorProvider:
    """Reads the operator bound to the current thread or task."""

    def current_operator_id(self) -> str | None:
        operator_id = get_current_operator()
        if operator_id is None or not operator_id.strip():
            return None
        return operator_id


class StaticOperatorProvider:
    """Always reports the same operator. Useful for jobs and tests."""

    def __init__(self, operator_id: str | None) -> None:
        self._operator_id = operator_id

    def current_operator_id(self) -> str | None:
        return self._operator_id
