"""Splits templates into literal text and ``{fn{expr}}`` fragments."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

# {{expr}} or {fn{expr}}; the function name may be surrounded by blanks.
_FRAGMENT_RE = re.compile(r"\{\s*(\w*)\s*\{(.*?)}}")


@dataclass(frozen=True)
class Fragment:
    text: str
    function_name: str
    expression: str
    start: int
    end: int


def is_literal(template: str) -> bool:
    return "{" not in template


@lru_cache(maxsize=1024)
def parse_fragments(template: str) -> tuple[Fragment, ...]:
    """Fragments of ``template`` in order of appearance."""
    if is_literal(template):
        return ()
    return tuple(
        Fragment(
            text=match.group(0),
            function_name=match.group(1),
            expression=match.group(2).strip(),
            start=match.start(),
            end=match.end(),
        )
        for match in _FRAGMENT_RE.finditer(template)
    )
