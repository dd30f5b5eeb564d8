"""Mustache-style interpolation over reactive state.

interpolate() replaces each `{{ path }}` with the value found at that dotted
path. Every step of the lookup reads through the wrappers, so a render()
effect reruns when any value it printed changes.

This is plain substitution, not a template language: no expressions,
filters, or control flow.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable

from vivify.effect import ReactiveEffect, effect

_MUSTACHE = re.compile(r"\{\{(.*?)\}\}")


def resolve(scope: Any, path: str) -> Any:
    """Follow a dotted path through mappings, sequences and attributes. Missing -> None."""
    value = scope
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        elif isinstance(value, Sequence) and not isinstance(value, str) and part.lstrip("-").isdigit():
            index = int(part)
            value = value[index] if -len(value) <= index < len(value) else None
        else:
            value = getattr(value, part, None)
    return value


def interpolate(template: str, scope: Any) -> str:
    def _substitute(match: re.Match) -> str:
        value = resolve(scope, match.group(1).strip())
        return "" if value is None else str(value)

    return _MUSTACHE.sub(_substitute, template.strip()).strip()


def render(template: str, scope: Any, sink: Callable[[str], None]) -> ReactiveEffect:
    """Render template into sink now and again whenever a value it read changes."""
    return effect(lambda: sink(interpolate(template, scope)))
