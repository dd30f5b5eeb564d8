"""Data anchor: the process-wide tables behind every wrapper and effect.

Identity caches map id(target) to the wrapper for one reactivity mode.
They are WeakValueDictionaries: an entry lives exactly as long as its
wrapper, and the wrapper holds its target, so an id is never recycled
while an entry for it exists.

target_deps maps id(target) to that target's KeyToDepMap. A map is held
alive by the Dep entries effects subscribe to (each Dep points back at
its owner), so a target with live subscribers stays alive and one
without them can be collected.
"""

from __future__ import annotations

import threading
import weakref

# Identity caches, one per mode
reactive_map: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
shallow_reactive_map: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
readonly_map: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
shallow_readonly_map: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

# Dependency graph: id(target) -> KeyToDepMap
target_deps: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

# Values flagged by mark_raw(): id -> value
skipped: dict[int, object] = {}

# Serializes wrapper construction across threads
lock = threading.RLock()


class Dep(dict):
    """Ordered set of the effects subscribed to one (target, key) entry."""

    __slots__ = ("owner", "key")

    def __init__(self, owner: KeyToDepMap | None = None, key: object = None) -> None:
        super().__init__()
        self.owner = owner
        self.key = key

    def add(self, effect) -> None:
        self[effect] = None

    def discard(self, effect) -> None:
        self.pop(effect, None)

    def __repr__(self) -> str:
        return f"Dep({self.key!r}, subscribers={len(self)})"


class KeyToDepMap(dict):
    """key -> Dep for a single target."""

    def __init__(self, target: object) -> None:
        super().__init__()
        self.target = target


def deps_for(target: object) -> KeyToDepMap | None:
    deps_map = target_deps.get(id(target))
    if deps_map is not None and deps_map.target is target:
        return deps_map
    return None
