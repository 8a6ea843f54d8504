"""Lookup of operation specs declared outside the code."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from bizlog.domain.operations import MethodRef, OperationSpec


class SpecRegistry:
    """Operation specs keyed by ``MethodRef.key``."""

    def __init__(self, specs: Mapping[str, Iterable[OperationSpec]] | None = None) -> None:
        self._specs: dict[str, tuple[OperationSpec, ...]] = {}
        for key, entries in (specs or {}).items():
            self.add(key, *entries)

    def add(self, key: str, *specs: OperationSpec) -> None:
        self._specs[key] = self._specs.get(key, ()) + specs

    def get(self, method: MethodRef) -> tuple[OperationSpec, ...]:
        return self._specs.get(method.key, ())

    def keys(self) -> list[str]:
        return list(self._specs)

    def __len__(self) -> int:
        return len(self._specs)
