"""Renders diff trees as human-readable change descriptions."""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from bizlog.config import DiffSettings
from bizlog.diff.node import DiffLogField, DiffNode, DiffState
from bizlog.template.functions import ValueFunctionRegistry

# Returned instead of text when the two graphs are equal.
DIFF_IS_NULL = "__DIFF_IS_NULL__"

_COLLECTION_TYPES = (list, tuple, set, frozenset)


class DiffRenderer:
    def __init__(self, registry: ValueFunctionRegistry, settings: DiffSettings | None = None) -> None:
        self._registry = registry
        self._settings = settings or DiffSettings()

    def render(self, diff: DiffNode, before: Any, after: Any) -> str:
        """One line per changed named field, joined by the field separator."""
        if not diff.has_changes():
            return DIFF_IS_NULL

        separator = self._settings.field_separator
        parts: list[str] = []
        for node in diff.walk():
            content = self._render_node(node, before, after)
            if content:
                parts.append(content + separator)
        text = "".join(parts)
        if separator and text.endswith(separator):
            text = text[: -len(separator)]
        return text

    def _render_node(self, node: DiffNode, before: Any, after: Any) -> str:
        if node.is_root() or node.is_object:
            return ""
        field = node.field
        if field is None or not field.name:
            return ""
        name = self._display_name(node, field)
        function_name = field.function

        if self._is_collection(node, before, after):
            before_items = self._collection_value(node, before)
            after_items = self._collection_value(node, after)
            added = self._join_items(_subtract(after_items, before_items), function_name)
            removed = self._join_items(_subtract(before_items, after_items), function_name)
            return self._settings.format_list(name, added, removed)

        if node.state is DiffState.ADDED:
            return self._settings.format_add(
                name, self._transform(node.canonical_get(after), function_name)
            )
        if node.state is DiffState.CHANGED:
            return self._settings.format_update(
                name,
                self._transform(node.canonical_get(before), function_name),
                self._transform(node.canonical_get(after), function_name),
            )
        if node.state is DiffState.REMOVED:
            return self._settings.format_deleted(
                name, self._transform(node.canonical_get(before), function_name)
            )
        return ""

    def _display_name(self, node: DiffNode, field: DiffLogField) -> str:
        prefix = ""
        for ancestor in node.ancestors():
            if ancestor.field is None:
                continue
            prefix = ancestor.field.name + self._settings.of_word + prefix
        return prefix + field.name

    @staticmethod
    def _is_collection(node: DiffNode, before: Any, after: Any) -> bool:
        value = node.canonical_get(before) if before is not None else None
        if value is None and after is not None:
            value = node.canonical_get(after)
        return isinstance(value, _COLLECTION_TYPES)

    @staticmethod
    def _collection_value(node: DiffNode, obj: Any) -> list[Any]:
        value = node.canonical_get(obj) if obj is not None else None
        return [] if value is None else list(value)

    def _join_items(self, items: list[Any], function_name: str) -> str:
        return self._settings.list_item_separator.join(
            self._transform(item, function_name) for item in items
        )

    def _transform(self, value: Any, function_name: str) -> str:
        if not function_name:
            return str(value)
        return self._registry.apply(function_name, str(value))


def _subtract(minuend: Collection[Any], subtrahend: Collection[Any]) -> list[Any]:
    return [item for item in minuend if item not in subtrahend]
