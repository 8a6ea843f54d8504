"""Named value functions usable from templates and diff fields."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from bizlog.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Reserved for object diffs; handled by the evaluator itself.
DIFF_FUNCTION_NAME = "_DIFF"

ValueFunction = Callable[[Any], Any]


@dataclass(frozen=True)
class ParseFunction:
    name: str
    func: ValueFunction
    execute_before: bool = False

    def apply(self, value: Any) -> str:
        result = self.func(value)
        return "" if result is None else str(result)


class ValueFunctionRegistry:
    """
    Maps function names to value transforms.

    ``{fn{expr}}`` in a template calls the function registered as ``fn`` with
    the value of ``expr``. Functions registered with ``execute_before=True``
    run before the intercepted call, so they see the state the call is about
    to change (e.g. a record's old title).
    """

    def __init__(self) -> None:
        self._functions: dict[str, ParseFunction] = {}
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        func: ValueFunction,
        *,
        execute_before: bool = False,
    ) -> None:
        if not name or not name.isidentifier():
            raise ConfigurationError(f"Invalid value function name: {name!r}")
        if name == DIFF_FUNCTION_NAME:
            raise ConfigurationError(f"{DIFF_FUNCTION_NAME} is reserved")
        with self._lock:
            if name in self._functions:
                raise ConfigurationError(f"Value function already registered: {name}")
            self._functions[name] = ParseFunction(name, func, execute_before)

    def function(
        self,
        name: str | None = None,
        *,
        execute_before: bool = False,
    ) -> Callable[[ValueFunction], ValueFunction]:
        """Decorator form of :meth:`register`; defaults to the function's name."""

        def decorator(func: ValueFunction) -> ValueFunction:
            self.register(name or func.__name__, func, execute_before=execute_before)
            return func

        return decorator

    def get(self, name: str) -> ParseFunction | None:
        return self._functions.get(name)

    def is_before_function(self, name: str) -> bool:
        function = self._functions.get(name)
        return function is not None and function.execute_before

    def apply(self, name: str, value: Any) -> str:
        """Display text for ``value``; unknown names fall back to ``str(value)``."""
        function = self._functions.get(name)
        if function is None:
            logger.warning("Value function %s is not registered", name)
            return "" if value is None else str(value)
        return function.apply(value)

    def __contains__(self, name: object) -> bool:
        return name in self._functions
