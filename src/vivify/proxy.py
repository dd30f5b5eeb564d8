"""Reactive wrappers for plain targets: mappings, sequences, attribute objects.

A wrapper never copies its target. Reads track (target, key) and lazily wrap
nested containers in the wrapper's own mode; writes go to the raw target and
trigger the effects that read the key.

Flags live in slots on the wrapper, never on the target:
_raw (back-reference), _readonly, _shallow.

Thread safety: call set_scheduler() once from the main thread. After that,
any mutation from a background thread is auto-marshaled. Main-thread
mutations remain synchronous.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import threading
import types
from collections.abc import MutableMapping, MutableSequence
from typing import Any, Callable, Iterator

from vivify._tracking import ITERATE_KEY, TriggerOp, begin_batch, end_batch, track, trigger
from vivify.classify import has_changed

logger = logging.getLogger("vivify.proxy")

_MISSING = object()

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler: Callable[[Callable[[], None]], Any] | None) -> None:
    """Set the global thread scheduler for cross-thread writes through wrappers.

    Call once from the main/UI thread:
        vivify.set_scheduler(app.call_from_thread)

    After this, any mutation from a background thread is automatically
    marshaled. Main-thread mutations remain synchronous. Pass None to turn
    marshaling off again.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def mutation(method):
    """Guard a mutating wrapper method: drop readonly writes, marshal foreign threads."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._readonly:
            logger.warning(
                "%s.%s%s ignored: target is readonly",
                type(self).__name__,
                method.__name__,
                f"({args[0]!r})" if args else "()",
            )
            return None
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda: method(self, *args, **kwargs))
            return None
        return method(self, *args, **kwargs)

    return wrapper


def is_proxy(value: object) -> bool:
    return isinstance(value, ReactiveProxy)


def to_raw(value):
    """Strip every wrapper layer. Non-wrappers come back unchanged."""
    while isinstance(value, ReactiveProxy):
        value = value._raw
    return value


class ReactiveProxy:
    """Base wrapper: flag slots, tracking, and lazy nested wrapping."""

    __slots__ = ("_raw", "_readonly", "_shallow", "_target", "__weakref__")

    def __init__(self, raw, *, readonly: bool = False, shallow: bool = False) -> None:
        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_readonly", readonly)
        object.__setattr__(self, "_shallow", shallow)
        # Reads through an inner wrapper are tracked by that wrapper.
        object.__setattr__(self, "_target", None if isinstance(raw, ReactiveProxy) else raw)

    def _track(self, key: object) -> None:
        if self._target is not None:
            track(self._target, key)

    def _trigger(self, op: TriggerOp, key: object = None) -> None:
        trigger(self._raw, op, key)

    def _wrap(self, value):
        if self._shallow:
            return value
        from vivify.factory import reactive, readonly

        return readonly(value) if self._readonly else reactive(value)

    def _unwrap(self, value):
        return value if self._shallow else to_raw(value)

    def __str__(self) -> str:
        return str(self._raw)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._raw!r})"


class ReactiveDict(ReactiveProxy, MutableMapping):
    """Reactive mapping. get(k), d[k] track k; iteration, len and `in` track the key set."""

    __slots__ = ()

    # --- Read operations (track) ---

    def __getitem__(self, key):
        self._track(key)
        return self._wrap(self._raw[key])

    def get(self, key, default=None):
        self._track(key)
        value = self._raw.get(key, _MISSING)
        if value is _MISSING:
            return default
        return self._wrap(value)

    def __contains__(self, key) -> bool:
        self._track(ITERATE_KEY)
        return key in self._raw

    def __iter__(self) -> Iterator:
        self._track(ITERATE_KEY)
        return iter(self._raw)

    def __len__(self) -> int:
        self._track(ITERATE_KEY)
        return len(self._raw)

    # --- Write operations (trigger) ---

    @mutation
    def __setitem__(self, key, value) -> None:
        raw = self._raw
        value = self._unwrap(value)
        old = raw.get(key, _MISSING)
        raw[key] = value
        if old is _MISSING:
            self._trigger(TriggerOp.ADD, key)
        elif has_changed(value, self._unwrap(old)):
            self._trigger(TriggerOp.SET, key)

    @mutation
    def __delitem__(self, key) -> None:
        del self._raw[key]
        self._trigger(TriggerOp.DELETE, key)

    @mutation
    def pop(self, key, default=_MISSING):
        raw = self._raw
        if key not in raw:
            if default is _MISSING:
                raise KeyError(key)
            return default
        value = raw.pop(key)
        self._trigger(TriggerOp.DELETE, key)
        return self._wrap(value)

    @mutation
    def popitem(self):
        key, value = self._raw.popitem()
        self._trigger(TriggerOp.DELETE, key)
        return key, self._wrap(value)

    @mutation
    def clear(self) -> None:
        if self._raw:
            self._raw.clear()
            self._trigger(TriggerOp.CLEAR)

    @mutation
    def update(self, other=(), /, **kwargs) -> None:
        begin_batch()
        try:
            MutableMapping.update(self, other, **kwargs)
        finally:
            end_batch()


class ReactiveList(ReactiveProxy, MutableSequence):
    """Reactive sequence. l[i] tracks i; iteration, len and slices track the whole list."""

    __slots__ = ()

    def _index(self, index: int) -> int:
        if index < 0:
            self._track(ITERATE_KEY)
            index += len(self._raw)
        return index

    # --- Read operations (track) ---

    def __getitem__(self, index):
        if isinstance(index, slice):
            self._track(ITERATE_KEY)
            return [self._wrap(v) for v in self._raw[index]]
        self._track(self._index(index))
        return self._wrap(self._raw[index])

    def __len__(self) -> int:
        self._track(ITERATE_KEY)
        return len(self._raw)

    def __iter__(self) -> Iterator:
        self._track(ITERATE_KEY)
        return (self._wrap(v) for v in self._raw)

    def __contains__(self, value) -> bool:
        self._track(ITERATE_KEY)
        return self._unwrap(value) in self._raw

    def index(self, value, *args) -> int:
        self._track(ITERATE_KEY)
        return self._raw.index(self._unwrap(value), *args)

    def count(self, value) -> int:
        self._track(ITERATE_KEY)
        return self._raw.count(self._unwrap(value))

    def __eq__(self, other) -> bool:
        self._track(ITERATE_KEY)
        return self._raw == to_raw(other)

    # --- Write operations (trigger) ---

    @mutation
    def __setitem__(self, index, value) -> None:
        raw = self._raw
        if isinstance(index, slice):
            start = index.indices(len(raw))[0]
            raw[index] = [self._unwrap(v) for v in value]
            self._trigger(TriggerOp.SHIFT, start)
            return
        if index < 0:
            index += len(raw)
        value = self._unwrap(value)
        old = raw[index]
        raw[index] = value
        if has_changed(value, self._unwrap(old)):
            self._trigger(TriggerOp.SET, index)

    @mutation
    def __delitem__(self, index) -> None:
        raw = self._raw
        if isinstance(index, slice):
            start = index.indices(len(raw))[0]
        else:
            start = index + len(raw) if index < 0 else index
        del raw[index]
        self._trigger(TriggerOp.SHIFT, start)

    @mutation
    def append(self, value) -> None:
        raw = self._raw
        raw.append(self._unwrap(value))
        self._trigger(TriggerOp.ADD, len(raw) - 1)

    @mutation
    def extend(self, values) -> None:
        raw = self._raw
        start = len(raw)
        raw.extend(self._unwrap(v) for v in values)
        if len(raw) > start:
            self._trigger(TriggerOp.SHIFT, start)

    @mutation
    def insert(self, index: int, value) -> None:
        raw = self._raw
        size = len(raw)
        start = max(0, min(index + size if index < 0 else index, size))
        raw.insert(index, self._unwrap(value))
        self._trigger(TriggerOp.SHIFT, start)

    @mutation
    def pop(self, index: int = -1):
        raw = self._raw
        start = index + len(raw) if index < 0 else index
        value = raw.pop(index)
        self._trigger(TriggerOp.SHIFT, start)
        return self._wrap(value)

    @mutation
    def remove(self, value) -> None:
        raw = self._raw
        index = raw.index(self._unwrap(value))
        del raw[index]
        self._trigger(TriggerOp.SHIFT, index)

    @mutation
    def clear(self) -> None:
        if self._raw:
            self._raw.clear()
            self._trigger(TriggerOp.CLEAR)

    @mutation
    def sort(self, *, key=None, reverse: bool = False) -> None:
        self._raw.sort(key=key, reverse=reverse)
        self._trigger(TriggerOp.SHIFT, 0)

    @mutation
    def reverse(self) -> None:
        self._raw.reverse()
        self._trigger(TriggerOp.SHIFT, 0)

    def __iadd__(self, values):
        self.extend(values)
        return self


def _attr_names(inner) -> list[str]:
    if hasattr(inner, "__dict__"):
        return list(vars(inner))
    # Slotted dataclass: unset fields are skipped.
    return [f.name for f in dataclasses.fields(inner) if hasattr(inner, f.name)]


class ReactiveObject(ReactiveProxy):
    """Reactive attribute object (SimpleNamespace, non-frozen dataclass).

    Methods and properties defined on the target's class are bound to the
    wrapper, so their bodies read and write through it.

    Names in RESERVED_NAMES belong to the wrapper: reading one returns the
    wrapper's own member. Writes still land on the target, and
    to_raw(wrapper) reaches the target's value.
    """

    __slots__ = ()

    def __init__(self, raw, *, readonly: bool = False, shallow: bool = False) -> None:
        super().__init__(raw, readonly=readonly, shallow=shallow)
        shadowed = RESERVED_NAMES.intersection(_attr_names(to_raw(raw)))
        if shadowed:
            logger.warning(
                "%s attributes %s are shadowed by the wrapper",
                type(to_raw(raw)).__name__,
                ", ".join(sorted(shadowed)),
            )

    def _class_attr(self, name: str):
        inner = to_raw(self._raw)
        attr = getattr(type(inner), name, None)
        if isinstance(attr, property):
            return attr
        if isinstance(attr, types.FunctionType) and name not in getattr(inner, "__dict__", {}):
            return attr
        return None

    def _own_keys(self) -> list[str]:
        """Attribute names, tracked as the key set."""
        self._track(ITERATE_KEY)
        return _attr_names(to_raw(self._raw))

    def __getattr__(self, name: str):
        if name in ReactiveProxy.__slots__ or (name.startswith("__") and name.endswith("__")):
            raise AttributeError(name)
        attr = self._class_attr(name)
        if attr is not None:
            return attr.__get__(self, type(to_raw(self._raw)))
        self._track(name)
        return self._wrap(getattr(self._raw, name))

    @mutation
    def __setattr__(self, name: str, value) -> None:
        attr = self._class_attr(name)
        if isinstance(attr, property):
            attr.__set__(self, value)
            return
        raw = self._raw
        value = self._unwrap(value)
        old = getattr(raw, name, _MISSING)
        setattr(raw, name, value)
        if old is _MISSING:
            self._trigger(TriggerOp.ADD, name)
        elif has_changed(value, self._unwrap(old)):
            self._trigger(TriggerOp.SET, name)

    @mutation
    def __delattr__(self, name: str) -> None:
        delattr(self._raw, name)
        self._trigger(TriggerOp.DELETE, name)

    def __dir__(self) -> list[str]:
        return dir(to_raw(self._raw))


RESERVED_NAMES = frozenset(
    name
    for cls in ReactiveObject.__mro__
    for name in vars(cls)
    if not (name.startswith("__") and name.endswith("__"))
)
