"""Proxy factory: one wrapper per (target, mode), created on demand.

Four modes, each with its own identity cache in _anchor:

    reactive          deep, read/write
    shallow_reactive  top level only, read/write
    readonly          deep, writes dropped with a warning
    shallow_readonly  top level only, writes dropped with a warning

Wrapping never fails: anything that cannot be wrapped (primitives,
tuples, MappingProxyType, frozen dataclasses, mark_raw'd values) comes back
unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableSequence, Set
from typing import TypeVar
from weakref import WeakValueDictionary

from vivify import _anchor
from vivify.classify import TargetType, mark_raw, target_type
from vivify.collection import ReactiveSet
from vivify.proxy import ReactiveDict, ReactiveList, ReactiveObject, ReactiveProxy, is_proxy, to_raw

T = TypeVar("T")

__all__ = [
    "reactive",
    "shallow_reactive",
    "readonly",
    "shallow_readonly",
    "is_reactive",
    "is_readonly",
    "is_shallow",
    "is_proxy",
    "to_raw",
    "mark_raw",
    "create_reactive_object",
]


def reactive(target: T) -> T:
    """Return the deep reactive wrapper for target.

    Usage:
        state = reactive({"count": 0, "user": {"name": "Ada"}})

        effect(lambda: print(state["user"]["name"]))
        # prints "Ada"

        state["user"]["name"] = "Grace"
        # prints "Grace": nested dicts are wrapped lazily on read
    """
    return create_reactive_object(target, False, False, _anchor.reactive_map)


def shallow_reactive(target: T) -> T:
    """Like reactive(), but nested values are returned raw."""
    return create_reactive_object(target, False, True, _anchor.shallow_reactive_map)


def readonly(target: T) -> T:
    """Return a deep readonly wrapper. Reads track, writes are dropped."""
    return create_reactive_object(target, True, False, _anchor.readonly_map)


def shallow_readonly(target: T) -> T:
    return create_reactive_object(target, True, True, _anchor.shallow_readonly_map)


def _proxy_class(raw: object) -> type[ReactiveProxy]:
    if isinstance(raw, Mapping):
        return ReactiveDict
    if isinstance(raw, Set):
        return ReactiveSet
    if isinstance(raw, MutableSequence):
        return ReactiveList
    return ReactiveObject


def create_reactive_object(
    target,
    readonly: bool,
    shallow: bool,
    proxy_map: WeakValueDictionary,
):
    # A wrapper is only re-wrapped to make it readonly.
    if isinstance(target, ReactiveProxy) and not (readonly and not target._readonly):
        return target

    with _anchor.lock:
        existing = proxy_map.get(id(target))
        if existing is not None and existing._raw is target:
            return existing

        raw = to_raw(target)
        if target_type(raw) is TargetType.INVALID:
            return target

        proxy = _proxy_class(raw)(target, readonly=readonly, shallow=shallow)
        proxy_map[id(target)] = proxy
        return proxy


def is_reactive(value: object) -> bool:
    """True for reactive wrappers, including a readonly view of one."""
    if is_readonly(value):
        return is_reactive(value._raw)
    return is_proxy(value)


def is_readonly(value: object) -> bool:
    return is_proxy(value) and value._readonly


def is_shallow(value: object) -> bool:
    return is_proxy(value) and value._shallow
