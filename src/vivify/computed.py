"""Computed values: derived state with automatic dependency tracking.

A Computed wraps a getter. When evaluated, it tracks which reactive values
the getter reads and caches the result. When any dependency changes, the
cached value is invalidated and effects reading the computed are triggered.
On next read, it re-evaluates.

Computed values are lazy: they only recompute when read.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

from vivify._anchor import Dep
from vivify._tracking import active_effect, track_effects, trigger_effects
from vivify.effect import ReactiveEffect

T = TypeVar("T")

logger = logging.getLogger("vivify.computed")

_UNSET = object()


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_getter", "_setter", "_effect", "_dep", "_value", "_dirty", "__weakref__")

    def __init__(self, getter: Callable[[], T], setter: Callable[[T], None] | None = None) -> None:
        self._getter = getter
        self._setter = setter
        self._dep = Dep(None, "value")
        self._value = _UNSET
        self._dirty = True
        self._effect = ReactiveEffect(getter, scheduler=self._invalidate, deferrable=False)
        self._effect.computed = self

    @property
    def effect(self) -> ReactiveEffect[T]:
        return self._effect

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def value(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        effect = active_effect()
        if effect is not None:
            track_effects(self._dep, effect)

        if self._dirty or not self._effect.active:
            self._value = self._effect.run()
            self._dirty = False

        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if self._setter is None:
            logger.warning("Write to computed %r ignored: it has no setter", self)
            return
        self._setter(new_value)

    def get(self) -> T:
        return self.value

    def set(self, new_value: T) -> None:
        self.value = new_value

    def _invalidate(self, effect: ReactiveEffect) -> None:
        """Scheduler: mark dirty and propagate to our own subscribers.

        Recomputation waits for the next read.
        """
        if not self._dirty:
            self._dirty = True
            trigger_effects(list(self._dep))

    def dispose(self) -> None:
        """Disconnect from all dependencies. Reads keep working, untracked."""
        self._effect.dispose()
        self._dep.clear()
        self._dirty = True
        self._value = _UNSET

    def __repr__(self) -> str:
        name = getattr(self._getter, "__name__", repr(self._getter))
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        return f"Computed({name}, {state})"


def computed(
    getter: Callable[[], T],
    setter: Callable[[T], None] | None = None,
) -> Computed[T]:
    """Decorator/factory to create a Computed from a getter.

    Usage:
        state = reactive({"count": 0})

        @computed
        def doubled():
            return state["count"] * 2

        doubled.value  # 0
        state["count"] = 5
        doubled.value  # 10
    """
    return Computed(getter, setter)
