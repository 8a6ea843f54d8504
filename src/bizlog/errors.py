"""Exception types raised by the audit-log engine."""

from __future__ import annotations


class BizLogError(Exception):
    """Base class for every error raised by bizlog."""


class ConfigurationError(BizLogError, ValueError):
    """An operation spec is malformed. Raised at registration time."""


class EvaluationError(BizLogError):
    """A template could not be evaluated against a runtime context."""

    def __init__(self, template: str, reason: str) -> None:
        super().__init__(f"Failed to evaluate template {template!r}: {reason}")
        self.template = template
        self.reason = reason


class AssemblyError(BizLogError):
    """A resolved record could not be turned into an audit record."""
