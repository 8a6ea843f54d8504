"""Structural diff tree over two object graphs."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

DIFF_METADATA_KEY = "diff_log"


class DiffState(str, Enum):
    UNTOUCHED = "UNTOUCHED"
    ADDED = "ADDED"
    CHANGED = "CHANGED"
    REMOVED = "REMOVED"


@dataclass(frozen=True)
class DiffLogField:
    """Display metadata for a field. Fields without it are never rendered."""

    name: str
    function: str = ""


def diff_log_field(name: str, function: str = "", **kwargs: Any) -> Any:
    """``dataclasses.field`` carrying diff display metadata.

    Usage::

        @dataclass
        class Order:
            title: str = diff_log_field("Title")
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[DIFF_METADATA_KEY] = DiffLogField(name, function)
    return dataclasses.field(metadata=metadata, **kwargs)


def diff_log_extra(name: str, function: str = "") -> dict[str, Any]:
    """``json_schema_extra`` for a pydantic ``Field`` carrying diff display metadata."""
    return {DIFF_METADATA_KEY: {"name": name, "function": function}}


def field_metadata(owner: type, field_name: str) -> DiffLogField | None:
    """Diff metadata declared on ``owner.field_name``, if any."""
    if dataclasses.is_dataclass(owner):
        for f in dataclasses.fields(owner):
            if f.name == field_name:
                value = f.metadata.get(DIFF_METADATA_KEY)
                return value if isinstance(value, DiffLogField) else None
        return None
    if isinstance(owner, type) and issubclass(owner, BaseModel):
        info = owner.model_fields.get(field_name)
        extra = info.json_schema_extra if info is not None else None
        if isinstance(extra, Mapping):
            raw = extra.get(DIFF_METADATA_KEY)
            if isinstance(raw, Mapping) and raw.get("name") is not None:
                return DiffLogField(str(raw["name"]), str(raw.get("function") or ""))
    return None


class DiffNode:
    """One field in the comparison of a ``before`` and an ``after`` graph.

    Nodes are produced per comparison and read-only afterwards. ``path`` is
    the attribute path from the root objects, so the same node can read the
    field's value from either graph.
    """

    def __init__(
        self,
        state: DiffState,
        path: tuple[str, ...] = (),
        field: DiffLogField | None = None,
        is_object: bool = False,
        parent: DiffNode | None = None,
    ) -> None:
        self._state = state
        self._path = path
        self._field = field
        self._is_object = is_object
        self._parent = parent
        self._children: list[DiffNode] = []

    @property
    def state(self) -> DiffState:
        return self._state

    @property
    def path(self) -> tuple[str, ...]:
        return self._path

    @property
    def property_name(self) -> str:
        return self._path[-1] if self._path else ""

    @property
    def field(self) -> DiffLogField | None:
        return self._field

    @property
    def function_name(self) -> str:
        return self._field.function if self._field is not None else ""

    @property
    def is_object(self) -> bool:
        """True when the field holds a nested object that is compared field by field."""
        return self._is_object

    @property
    def parent(self) -> DiffNode | None:
        return self._parent

    @property
    def children(self) -> tuple[DiffNode, ...]:
        return tuple(self._children)

    def is_root(self) -> bool:
        return self._parent is None

    def has_changes(self) -> bool:
        return self._state is not DiffState.UNTOUCHED

    def ancestors(self) -> Iterator[DiffNode]:
        """Parents from nearest to farthest."""
        node = self._parent
        while node is not None:
            yield node
            node = node._parent

    def walk(self) -> Iterator[DiffNode]:
        """Depth-first, pre-order."""
        yield self
        for child in self._children:
            yield from child.walk()

    def canonical_get(self, obj: Any) -> Any:
        """Read this node's value from ``obj``; None if any step is missing."""
        value = obj
        for name in self._path:
            if value is None:
                return None
            if isinstance(value, Mapping):
                value = value.get(name)
            else:
                value = getattr(value, name, None)
        return value

    def add_child(self, child: DiffNode) -> None:
        """Attach a child while the tree is being built."""
        self._children.append(child)

    def __repr__(self) -> str:
        return f"DiffNode(path={'.'.join(self._path) or '<root>'!r}, state={self._state.value})"
