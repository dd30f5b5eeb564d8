"""Instance property bridge: expose a reactive mapping's keys as attributes.

    class Counter(StateBridge):
        def __init__(self):
            self._state = reactive({"count": 0})
            self._bridge(self._state)

    c = Counter()
    c.count += 1          # reads and writes go through the wrapper

Keys starting with "_" or "$" are reserved for the owner and never bridged.
Keys that would shadow an attribute of the owner's class are skipped with
a warning.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import MutableMapping
from typing import Any, Callable, Iterable

from vivify.factory import to_raw

logger = logging.getLogger("vivify.bridge")

RESERVED_PREFIXES = ("_", "$")

Getter = Callable[[], Any]
Setter = Callable[[Any], None]


def is_reserved(key: object) -> bool:
    return not isinstance(key, str) or key.startswith(RESERVED_PREFIXES)


class StateBridge:
    """Mixin: forwards bridged names to accessor pairs instead of instance attributes."""

    def _accessors(self) -> dict[str, tuple[Getter, Setter | None]]:
        accessors = self.__dict__.get("_bridged")
        if accessors is None:
            accessors = {}
            object.__setattr__(self, "_bridged", accessors)
        return accessors

    def _bridge_accessor(self, name: str, getter: Getter, setter: Setter | None = None) -> bool:
        """Bridge one name. Returns False if it was reserved or shadowed."""
        if is_reserved(name):
            return False
        if hasattr(type(self), name):
            logger.warning(
                "Key %r is not bridged onto %s: it collides with a class attribute",
                name,
                type(self).__name__,
            )
            return False
        self._accessors()[name] = (getter, setter)
        return True

    def _bridge(self, state: MutableMapping, keys: Iterable[str] | None = None) -> list[str]:
        """Bridge top-level keys of state (all of them by default). Returns the bridged names."""
        bridged = []
        for key in list(to_raw(state) if keys is None else keys):
            getter = functools.partial(state.__getitem__, key)
            setter = functools.partial(state.__setitem__, key)
            if self._bridge_accessor(key, getter, setter):
                bridged.append(key)
        return bridged

    def _is_bridged(self, name: str) -> bool:
        return name in self.__dict__.get("_bridged", ())

    def __getattr__(self, name: str):
        accessors = self.__dict__.get("_bridged", {})
        if name in accessors:
            return accessors[name][0]()
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value) -> None:
        accessors = self.__dict__.get("_bridged", {})
        if name in accessors:
            setter = accessors[name][1]
            if setter is None:
                raise AttributeError(f"bridged attribute {name!r} is read-only")
            setter(value)
        else:
            object.__setattr__(self, name, value)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self.__dict__.get("_bridged", ())))
