"""Actions, transactions and untracked scopes.

Wrapping mutations in an @action or `with transaction()` defers effect and
watcher reruns until the outermost scope exits. Each affected effect then
reruns once, however many of its dependencies changed, and never sees a
half-applied update.

`with untracked():` suspends dependency collection: reads inside it never
subscribe the running effect.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from vivify._tracking import begin_batch, end_batch, tracking_enabled

P = ParamSpec("P")
R = TypeVar("R")


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all reactive writes inside fn.

    Effects only rerun after fn returns, not during.

    Usage:
        state = reactive({"a": 0, "b": 0})

        @action
        def swap():
            state["a"], state["b"] = state["b"], state["a"]
            # effects see both writes at once, not one at a time
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper


@contextmanager
def transaction() -> Iterator[None]:
    """Context manager for batching writes.

    Usage:
        with transaction():
            state["a"] = 1
            state["b"] = 2
            # effects rerun here, once, after both are set
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()


@contextmanager
def untracked() -> Iterator[None]:
    """Read reactive state without subscribing the running effect."""
    token = tracking_enabled.set(False)
    try:
        yield
    finally:
        tracking_enabled.reset(token)
