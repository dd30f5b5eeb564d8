"""Store: a reactive data owner with bridged attributes and effect lifecycle.

A Store wraps a dict with reactive() and exposes each top-level key as an
attribute. Computed values and watchers can be declared up front; effects
registered through the store are disposed with it. reconcile() supports
schema evolution: add new keys and re-register effects without losing
existing values.

    store = Store(
        {"first": "Ada", "last": "Lovelace"},
        computed={"full": lambda s: f"{s.first} {s.last}"},
        watch={"first": lambda new, old: print(old, "->", new)},
        methods={"rename": lambda s, first: s.set("first", first)},
    )
    store.first = "Augusta"     # prints "Ada -> Augusta"
    store.full                  # "Augusta Lovelace"
    store.rename("Ada")         # prints "Augusta -> Ada"
"""

from __future__ import annotations

import logging
import types
from collections.abc import Mapping, MutableMapping
from typing import Any, Callable

from vivify.action import action
from vivify.bridge import StateBridge
from vivify.computed import Computed
from vivify.events import EventEmitter
from vivify.factory import reactive, to_raw
from vivify.template import render, resolve
from vivify.watch import WatchCallback, WatchHandle, watch

logger = logging.getLogger("vivify.store")

ComputedDef = Callable[["Store"], Any] | Mapping[str, Callable]


class Store(StateBridge, EventEmitter):
    """Reactive data owner with bridged attributes, computeds, watchers and events."""

    def __init__(
        self,
        data: MutableMapping | Callable[[], MutableMapping] | None = None,
        *,
        computed: Mapping[str, ComputedDef] | None = None,
        watch: Mapping[str, WatchCallback] | None = None,
        methods: Mapping[str, Callable] | None = None,
    ) -> None:
        EventEmitter.__init__(self)
        raw = data() if callable(data) else ({} if data is None else data)
        if not isinstance(raw, MutableMapping):
            raise TypeError(f"Store data must be a mutable mapping, got {type(raw).__name__}")
        self._state = reactive(raw)
        self._computed: dict[str, Computed] = {}
        self._disposers: list = []
        self._reaction_disposers: list = []
        self._bridge(self._state)
        for name, fn in (methods or {}).items():
            self.add_method(name, fn)
        for name, definition in (computed or {}).items():
            self.add_computed(name, definition)
        for path, callback in (watch or {}).items():
            self.watch(path, callback)

    @property
    def state(self) -> MutableMapping:
        """The reactive data."""
        return self._state

    def get(self, key: str) -> object:
        return self._state.get(key)

    def set(self, key: str, value: object) -> None:
        """Write key; a key the store has not seen before is bridged too."""
        is_new = key not in to_raw(self._state)
        self._state[key] = value
        if is_new:
            self._bridge(self._state, [key])

    @action
    def update(self, values: Mapping[str, object]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def add_computed(self, name: str, definition: ComputedDef) -> Computed:
        """Declare a computed attribute.

        definition is either fn(store) or {"get": fn(store), "set": fn(store, value)}.
        """
        if isinstance(definition, Mapping):
            getter, setter = definition["get"], definition.get("set")
        else:
            getter, setter = definition, None
        c = Computed(
            lambda: getter(self),
            (lambda value: setter(self, value)) if setter is not None else None,
        )
        self._computed[name] = c
        self._disposers.append(c)
        self._bridge_accessor(name, c.get, c.set)
        return c

    def add_method(self, name: str, fn: Callable) -> None:
        """Bind fn(store, *args) onto the store as a method."""
        if not callable(fn):
            raise TypeError(f"method {name!r} must be callable, got {type(fn).__name__}")
        if hasattr(type(self), name) or self._is_bridged(name):
            logger.warning("Method %r not bound: it collides with an existing attribute", name)
            return
        object.__setattr__(self, name, types.MethodType(fn, self))

    def computed(self, name: str) -> Computed:
        return self._computed[name]

    def watch(self, source: Any, callback: WatchCallback, **options: Any) -> WatchHandle:
        """Watch a dotted key path, a getter, or any other watch() source."""
        if isinstance(source, str):
            path = source
            source = lambda: resolve(self._state, path)  # noqa: E731
        handle = watch(source, callback, **options)
        self._disposers.append(handle)
        return handle

    def render(self, template: str, sink: Callable[[str], None]):
        """Render template against the store's state into sink, reactively."""
        runner = render(template, self._state, sink)
        self._disposers.append(runner)
        return runner

    def reconcile(self, schema: Mapping[str, object], setup_fn) -> None:
        """Schema evolution: add new keys, re-register effects.

        Existing values are untouched. New keys get defaults.
        Old effects are disposed. setup_fn(store) -> list[disposable] registers new ones.
        If setup_fn raises, the failure is logged and the store keeps running
        with its values intact and no reconciled effects.
        """
        raw = to_raw(self._state)
        new_keys = [key for key in schema if key not in raw]
        for key in new_keys:
            self.set(key, schema[key])

        old_count = len(self._reaction_disposers)
        self._dispose_reactions()
        try:
            self._reaction_disposers = list(setup_fn(self) or [])
        except Exception:
            logger.exception("Failed to register effects during reconcile")
            self._reaction_disposers = []
            return
        logger.info(
            "Reconciled: %d new keys, %d->%d effects",
            len(new_keys), old_count, len(self._reaction_disposers),
        )

    def _dispose_reactions(self) -> None:
        for d in self._reaction_disposers:
            d.dispose()
        self._reaction_disposers.clear()

    def dispose(self) -> None:
        """Dispose every computed, watcher, render and reconciled effect; drop listeners."""
        self._dispose_reactions()
        for d in self._disposers:
            d.dispose()
        self._disposers.clear()
        self.off()

    def __repr__(self) -> str:
        return f"Store({to_raw(self._state)!r})"

