"""Dependency tracking engine: the heart of vivify.

Uses contextvars to hold the stack of currently-running effects. Any read
through a wrapper while an effect is on the stack subscribes the innermost
effect to that (target, key); any write triggers every subscriber.

Batching: mutations inside an @action, `with transaction()`, or a bulk
wrapper operation accumulate triggered effects and flush them once at the
end, so each affected effect reruns exactly once per burst.
"""

from __future__ import annotations

import contextvars
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from vivify import _anchor
from vivify._anchor import Dep, KeyToDepMap

if TYPE_CHECKING:
    from vivify.effect import ReactiveEffect


class _IterateKey:
    __slots__ = ()

    def __repr__(self) -> str:
        return "ITERATE_KEY"


# Stands for "the key set changed": has/iteration/len depend on it.
ITERATE_KEY = _IterateKey()


class TriggerOp(Enum):
    SET = "set"
    ADD = "add"
    DELETE = "delete"
    CLEAR = "clear"
    SHIFT = "shift"  # sequence indices >= key moved


# Effects currently running, innermost last.
effect_stack: contextvars.ContextVar[tuple[ReactiveEffect, ...]] = contextvars.ContextVar(
    "effect_stack", default=()
)

# False inside untracked(): reads register nothing.
tracking_enabled: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "tracking_enabled", default=True
)

# Batch depth counter. When > 0, deferrable effects are queued.
_batch_depth: int = 0

# Effects triggered during a batch, awaiting flush. Insertion-ordered, deduplicated.
_pending: dict[ReactiveEffect, None] = {}


def active_effect() -> ReactiveEffect | None:
    """The effect that a read would subscribe right now, if any."""
    if not tracking_enabled.get():
        return None
    stack = effect_stack.get()
    return stack[-1] if stack else None


def track(target: object, key: object) -> None:
    """Subscribe the running effect to (target, key). No-op outside effects."""
    effect = active_effect()
    if effect is None:
        return
    deps_map = _anchor.deps_for(target)
    if deps_map is None:
        deps_map = KeyToDepMap(target)
        _anchor.target_deps[id(target)] = deps_map
    dep = deps_map.get(key)
    if dep is None:
        dep = deps_map[key] = Dep(deps_map, key)
    track_effects(dep, effect)


def track_effects(dep: Dep, effect: ReactiveEffect) -> None:
    if effect not in dep:
        dep.add(effect)
        effect.deps.append(dep)


def trigger(target: object, op: TriggerOp, key: object = None) -> None:
    """Schedule every effect that depends on (target, key)."""
    deps_map = _anchor.deps_for(target)
    if deps_map is None:
        return

    if op is TriggerOp.CLEAR:
        deps = list(deps_map.values())
    elif op is TriggerOp.SHIFT:
        deps = [
            dep
            for k, dep in deps_map.items()
            if k is ITERATE_KEY or (type(k) is int and k >= key)
        ]
    else:
        deps = []
        dep = deps_map.get(key)
        if dep is not None:
            deps.append(dep)
        if op in (TriggerOp.ADD, TriggerOp.DELETE):
            dep = deps_map.get(ITERATE_KEY)
            if dep is not None:
                deps.append(dep)

    # Snapshot: effects may subscribe/unsubscribe while we notify.
    trigger_effects([effect for dep in deps for effect in dep])


def trigger_effects(effects: Iterable[ReactiveEffect]) -> None:
    """Schedule effects, computeds first, skipping any that are running now."""
    snapshot = list(dict.fromkeys(effects))
    running = effect_stack.get()
    for effect in snapshot:
        if effect.computed is not None and effect not in running:
            schedule(effect)
    for effect in snapshot:
        if effect.computed is None and effect not in running:
            schedule(effect)


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. When the outermost scope exits, flush pending effects."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def schedule(effect: ReactiveEffect) -> None:
    """Schedule an effect for re-evaluation.

    Inside a batch, deferrable effects wait for the flush. Otherwise runs immediately.
    """
    if _batch_depth > 0 and effect.deferrable:
        _pending[effect] = None
    else:
        effect._job()


def _flush_pending() -> None:
    """Run all pending effects. Handles effects scheduled during flush."""
    while _pending:
        batch = list(_pending)
        _pending.clear()
        for effect in batch:
            effect._job()


def get_pending_count() -> int:
    """Number of effects waiting to run. Useful for testing."""
    return len(_pending)
