"""watch(): call back with (new, old) when a reactive source changes.

The source is tracked by a lazy effect. When its dependencies change the
getter reruns, and the callback fires if the value changed (or always, for
deep watches, since a mutated object is still the same object).

Returns a WatchHandle for cleanup via .dispose() or by calling it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from vivify.action import untracked
from vivify.classify import has_changed
from vivify.computed import Computed
from vivify.effect import ReactiveEffect
from vivify.factory import is_proxy
from vivify.proxy import ReactiveObject

_UNSET = object()

Source = Any
WatchCallback = Callable[[Any, Any], None]


class WatchHandle:
    """Disposable handle for a watcher. Calling it unwatches."""

    __slots__ = ("_effect",)

    def __init__(self, effect: ReactiveEffect) -> None:
        self._effect = effect

    @property
    def effect(self) -> ReactiveEffect:
        return self._effect

    @property
    def disposed(self) -> bool:
        return self._effect.disposed

    def dispose(self) -> None:
        """Stop watching. Idempotent."""
        self._effect.dispose()

    def __call__(self) -> None:
        self.dispose()


def traverse(value, seen: set[int] | None = None):
    """Read every nested value of a wrapper so each one is tracked."""
    if not is_proxy(value):
        return value
    if seen is None:
        seen = set()
    if id(value) in seen:
        return value
    seen.add(id(value))

    if isinstance(value, Mapping):
        for key in value:
            traverse(value[key], seen)
    elif isinstance(value, ReactiveObject):
        for name in value._own_keys():
            traverse(getattr(value, name), seen)
    else:
        for item in value:
            traverse(item, seen)
    return value


def _getter_for(source: Source) -> Callable[[], Any]:
    if is_proxy(source):
        return lambda: source
    if isinstance(source, Computed):
        return lambda: source.value
    if callable(source):
        return source
    raise TypeError(
        f"watch source must be a reactive object, a Computed, a callable, "
        f"or a list of these; got {type(source).__name__}"
    )


def watch(
    source: Source,
    callback: WatchCallback,
    *,
    immediate: bool = False,
    deep: bool = False,
) -> WatchHandle:
    """Track source; call callback(new, old) when it changes.

    Usage:
        state = reactive({"first": "Ada", "last": "Lovelace"})
        seen = []

        stop = watch(
            lambda: f"{state['first']} {state['last']}",
            lambda new, old: seen.append((new, old)),
        )
        # seen == [], the getter ran to establish deps but the callback didn't

        state["first"] = "Augusta"
        # seen == [("Augusta Lovelace", "Ada Lovelace")]

        stop()

    A reactive object as source implies deep=True. With immediate=True the
    callback fires once at creation with old=None.
    """
    multi = isinstance(source, (list, tuple))
    if multi:
        getters = [_getter_for(s) for s in source]
        getter = lambda: [g() for g in getters]  # noqa: E731
        deep = deep or any(is_proxy(s) for s in source)
    else:
        getter = _getter_for(source)
        deep = deep or is_proxy(source)

    if deep and multi:
        base_getter = getter
        getter = lambda: [traverse(v) for v in base_getter()]  # noqa: E731
    elif deep:
        base_getter = getter
        getter = lambda: traverse(base_getter())  # noqa: E731

    old_value = _UNSET

    def _changed(new_value) -> bool:
        if deep or old_value is _UNSET:
            return True
        if multi:
            return any(has_changed(n, o) for n, o in zip(new_value, old_value))
        return has_changed(new_value, old_value)

    def job(effect: ReactiveEffect) -> None:
        nonlocal old_value
        if not effect.active:
            return
        new_value = effect.run()
        if _changed(new_value):
            previous = None if old_value is _UNSET else old_value
            old_value = new_value
            with untracked():
                callback(new_value, previous)

    runner = ReactiveEffect(getter, scheduler=job)
    if immediate:
        job(runner)
    else:
        old_value = runner.run()
    return WatchHandle(runner)
