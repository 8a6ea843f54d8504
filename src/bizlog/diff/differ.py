"""Builds diff trees for dataclass and pydantic object graphs."""

from __future__ import annotations

import dataclasses
from typing import Any

from pydantic import BaseModel

from bizlog.diff.node import DiffNode, DiffState, field_metadata

_MAX_DIFF_DEPTH = 20


def is_structured(value: Any) -> bool:
    """Objects the differ descends into instead of comparing as a whole."""
    if isinstance(value, type):
        return False
    return dataclasses.is_dataclass(value) or isinstance(value, BaseModel)


def _field_names(owner: type) -> list[str]:
    if dataclasses.is_dataclass(owner):
        return [f.name for f in dataclasses.fields(owner)]
    if issubclass(owner, BaseModel):
        return list(owner.model_fields)
    return []


def _state_of(before: Any, after: Any) -> DiffState:
    if before is None and after is None:
        return DiffState.UNTOUCHED
    if before is None:
        return DiffState.ADDED
    if after is None:
        return DiffState.REMOVED
    return DiffState.UNTOUCHED if before == after else DiffState.CHANGED


class ObjectDiffer:
    """
    Compares two object graphs field by field.

    Dataclasses and pydantic models are descended into; every other value,
    collections included, is a leaf compared by equality. Display metadata is
    read from ``diff_log_field`` / ``diff_log_extra`` declarations.
    """

    def __init__(self, max_depth: int = _MAX_DIFF_DEPTH) -> None:
        self._max_depth = max_depth

    def compare(self, before: Any, after: Any) -> DiffNode:
        root = DiffNode(
            _state_of(before, after),
            is_object=self._descends(before, after),
        )
        if root.is_object:
            self._compare_fields(root, before, after, depth=0)
        return root

    def _descends(self, before: Any, after: Any) -> bool:
        if before is None and after is None:
            return False
        if before is None or after is None:
            return is_structured(before if after is None else after)
        return is_structured(before) and type(before) is type(after)

    def _compare_fields(self, node: DiffNode, before: Any, after: Any, depth: int) -> None:
        owner = type(before if before is not None else after)
        for name in _field_names(owner):
            before_value = getattr(before, name, None) if before is not None else None
            after_value = getattr(after, name, None) if after is not None else None
            descend = depth < self._max_depth and self._descends(before_value, after_value)
            child = DiffNode(
                _state_of(before_value, after_value),
                path=node.path + (name,),
                field=field_metadata(owner, name),
                is_object=descend,
                parent=node,
            )
            node.add_child(child)
            if descend:
                self._compare_fields(child, before_value, after_value, depth + 1)
