"""Named-event emitter: on / once / off / emit.

Callbacks for an event run in registration order. A once() callback is
wrapped; off() matches either the wrapper or the original callback, so the
caller never needs to hold on to the wrapper. Matching uses ==, so a fresh
bound method such as log.append finds the one registered earlier.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

Callback = Callable[..., Any]
Disposer = Callable[[], None]


class EventEmitter:
    """String event name -> ordered list of callbacks."""

    def __init__(self) -> None:
        self._events: dict[str, list[Callback]] = {}

    def on(self, event: str | Iterable[str], callback: Callback) -> Disposer:
        """Register callback for one or more events. Returns a function that removes it."""
        names = [event] if isinstance(event, str) else list(event)
        for name in names:
            self._events.setdefault(name, []).append(callback)

        def _unsubscribe() -> None:
            self.off(names, callback)

        return _unsubscribe

    def once(self, event: str | Iterable[str], callback: Callback) -> Disposer:
        """Register callback to run on the next emit only."""
        names = [event] if isinstance(event, str) else list(event)

        def _once(*args: Any) -> None:
            self.off(names, callback)
            callback(*args)

        _once.fn = callback
        return self.on(names, _once)

    def off(self, event: str | Iterable[str] | None = None, callback: Callback | None = None) -> None:
        """Remove callbacks.

        off()                 everything
        off(event)            every callback for event
        off(event, callback)  callback (or its once() wrapper) for event
        """
        if event is None and callback is None:
            self._events.clear()
            return
        if event is None:
            names = list(self._events)
        elif isinstance(event, str):
            names = [event]
        else:
            names = list(event)

        for name in names:
            if name not in self._events:
                continue
            if callback is None:
                del self._events[name]
                continue
            remaining = [
                fn for fn in self._events[name]
                if fn != callback and getattr(fn, "fn", None) != callback
            ]
            if remaining:
                self._events[name] = remaining
            else:
                del self._events[name]

    def emit(self, event: str, *args: Any) -> None:
        """Call every callback for event with args."""
        for fn in list(self._events.get(event, ())):
            fn(*args)

    def listeners(self, event: str) -> list[Callback]:
        return list(self._events.get(event, ()))
