"""Reactive wrapper for set-like collections.

Sets have no positions, so the element itself is the dependency key:
`x in s` tracks x, and add/discard of x trigger exactly the effects that
asked about x, plus anything that iterated the set.
"""

from __future__ import annotations

from collections.abc import MutableSet
from typing import Iterator

from vivify._tracking import ITERATE_KEY, TriggerOp, begin_batch, end_batch
from vivify.proxy import ReactiveProxy, mutation


class ReactiveSet(ReactiveProxy, MutableSet):
    """Reactive set. Membership tracks the element; iteration and len track the key set."""

    __slots__ = ()

    @classmethod
    def _from_iterable(cls, it):
        # Set operators (|, &, -, ^) produce plain sets.
        return set(it)

    # --- Read operations (track) ---

    def __contains__(self, value) -> bool:
        value = self._unwrap(value)
        self._track(value)
        return value in self._raw

    def __iter__(self) -> Iterator:
        self._track(ITERATE_KEY)
        return (self._wrap(v) for v in self._raw)

    def __len__(self) -> int:
        self._track(ITERATE_KEY)
        return len(self._raw)

    # --- Write operations (trigger) ---

    @mutation
    def add(self, value) -> None:
        value = self._unwrap(value)
        if value not in self._raw:
            self._raw.add(value)
            self._trigger(TriggerOp.ADD, value)

    @mutation
    def discard(self, value) -> None:
        value = self._unwrap(value)
        if value in self._raw:
            self._raw.discard(value)
            self._trigger(TriggerOp.DELETE, value)

    @mutation
    def remove(self, value) -> None:
        value = self._unwrap(value)
        if value not in self._raw:
            raise KeyError(value)
        self.discard(value)

    @mutation
    def pop(self):
        value = self._raw.pop()
        self._trigger(TriggerOp.DELETE, value)
        return self._wrap(value)

    @mutation
    def clear(self) -> None:
        if self._raw:
            self._raw.clear()
            self._trigger(TriggerOp.CLEAR)

    @mutation
    def update(self, *others) -> None:
        begin_batch()
        try:
            for other in others:
                for value in other:
                    self.add(value)
        finally:
            end_batch()
