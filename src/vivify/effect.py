"""Effects: computations that rerun when the reactive state they read changes.

An effect runs its function with itself pushed on the effect stack, so every
read through a wrapper subscribes it. Before each run it drops all of its
previous subscriptions, so conditional reads never leave stale ones behind.

Lifecycle: created -> active (zero or more reruns) -> disposed (terminal).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from vivify._tracking import effect_stack, tracking_enabled

if TYPE_CHECKING:
    from vivify._anchor import Dep
    from vivify.computed import Computed

T = TypeVar("T")

Scheduler = Callable[["ReactiveEffect"], None]


class ReactiveEffect(Generic[T]):
    """A tracked computation with an explicit dispose()."""

    __slots__ = ("fn", "scheduler", "on_stop", "deps", "active", "computed", "deferrable", "__weakref__")

    def __init__(
        self,
        fn: Callable[[], T],
        *,
        scheduler: Scheduler | None = None,
        on_stop: Callable[[], None] | None = None,
        deferrable: bool = True,
    ) -> None:
        self.fn = fn
        self.scheduler = scheduler
        self.on_stop = on_stop
        self.deps: list[Dep] = []
        self.active = True
        self.computed: Computed | None = None
        self.deferrable = deferrable

    def run(self) -> T | None:
        """Run fn, rebuilding the dependency set from scratch."""
        if not self.active:
            token = tracking_enabled.set(False)
            try:
                return self.fn()
            finally:
                tracking_enabled.reset(token)

        stack = effect_stack.get()
        if self in stack:
            return None

        self._cleanup()
        stack_token = effect_stack.set(stack + (self,))
        track_token = tracking_enabled.set(True)
        try:
            return self.fn()
        finally:
            tracking_enabled.reset(track_token)
            effect_stack.reset(stack_token)

    def _job(self) -> None:
        """Called by the scheduler when a dependency changed."""
        if not self.active:
            return
        if self.scheduler is not None:
            self.scheduler(self)
        else:
            self.run()

    def _cleanup(self) -> None:
        for dep in self.deps:
            dep.discard(self)
        self.deps.clear()

    @property
    def disposed(self) -> bool:
        return not self.active

    def dispose(self) -> None:
        """Stop this effect. Disconnects from all dependencies. Idempotent."""
        if not self.active:
            return
        self._cleanup()
        self.active = False
        if self.on_stop is not None:
            self.on_stop()

    def __call__(self) -> T | None:
        return self.run()

    def __repr__(self) -> str:
        name = getattr(self.fn, "__name__", repr(self.fn))
        state = "active" if self.active else "disposed"
        return f"ReactiveEffect({name}, {state})"


def effect(
    fn: Callable[[], T],
    *,
    lazy: bool = False,
    scheduler: Scheduler | None = None,
    on_stop: Callable[[], None] | None = None,
) -> ReactiveEffect[T]:
    """Run fn now, then again whenever any reactive value it read changes.

    Returns the ReactiveEffect (call .dispose() to stop, .run() to rerun by hand).

    Usage:
        state = reactive({"count": 0})
        log = []

        runner = effect(lambda: log.append(state["count"]))
        # log == [0], ran immediately

        state["count"] = 1
        # log == [0, 1], re-ran because count changed

        runner.dispose()
        state["count"] = 2
        # log == [0, 1], stopped

    With lazy=True the first run is left to the caller. A scheduler, when
    given, is called with the effect instead of rerunning it, which lets the
    caller defer or drop reruns.
    """
    runner = ReactiveEffect(fn, scheduler=scheduler, on_stop=on_stop)
    if not lazy:
        runner.run()
    return runner
