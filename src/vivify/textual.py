"""Textual integration: effects, watchers and renders that update widgets safely.

Opt-in, requires textual. Only this module imports it; the rest of vivify
knows nothing about apps or widgets.

Every callback built here goes through one guard, which:
    skips the call while the app is paused or not running,
    ignores NoMatches raised by widget queries,
    hops to the app's thread with call_from_thread when triggered elsewhere.

Pause state belongs to this module and is keyed by id(app): an id is in
_paused_apps exactly while a pause(app) block is open.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable

from textual.css.query import NoMatches

from vivify.effect import ReactiveEffect, effect as _effect
from vivify.template import interpolate
from vivify.watch import WatchHandle, watch as _watch

logger = logging.getLogger("vivify.textual")

_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded effects and watchers during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn: Callable[..., Any]) -> Callable[..., None]:
    owner = threading.get_ident()

    def _call(*args: Any) -> None:
        try:
            fn(*args)
        except NoMatches as exc:
            logger.debug("Widget query missed in %r: %s", fn, exc)

    def guarded(*args: Any) -> None:
        if not is_safe(app):
            return
        if threading.get_ident() == owner:
            _call(*args)
        else:
            app.call_from_thread(_call, *args)

    return guarded


def watch(app, source, callback, *, immediate: bool = False, deep: bool = False) -> WatchHandle:
    """watch() whose callback only touches widgets when the app can take it.

    The source is still tracked while the app is paused; only the callback
    is skipped, so the next change after the pause is delivered normally.
    """
    return _watch(source, _guard(app, callback), immediate=immediate, deep=deep)


def effect(app, fn: Callable[[], Any]) -> ReactiveEffect:
    """effect() whose body only runs when the app can take it.

    A run skipped while unsafe reads nothing, so it also drops the effect's
    dependencies. Prefer watch() for state that may change during a pause.
    """
    return _effect(_guard(app, fn))


def render(app, template: str, scope: Any, sink: Callable[[str], Any]) -> ReactiveEffect:
    """Interpolate template against scope into sink (e.g. a Static's update).

    Interpolation runs inside the tracked effect; only the sink call is
    guarded and marshaled, so dependencies survive a pause.

        render(app, "{{ done }}/{{ total }} done", state,
               lambda text: app.query_one("#progress", Static).update(text))
    """
    push = _guard(app, sink)
    return _effect(lambda: push(interpolate(template, scope)))
