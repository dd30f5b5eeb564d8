"""Tests for vivify.textual, the Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from vivify import reactive
from vivify import textual as vtx


class _MockApp:
    """Minimal mock matching the Textual App interface vtx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class TestWatch:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        s = reactive({"n": 1})
        seen = []
        vtx.watch(app, lambda: s["n"], lambda new, old: seen.append(new))
        s["n"] = 2
        assert seen == []

    def test_skips_during_pause(self):
        app = _MockApp()
        s = reactive({"n": 1})
        seen = []
        vtx.watch(app, lambda: s["n"], lambda new, old: seen.append(new))
        with vtx.pause(app):
            s["n"] = 2
        assert seen == []

    def test_tracking_survives_pause(self):
        app = _MockApp()
        s = reactive({"n": 1})
        seen = []
        vtx.watch(app, lambda: s["n"], lambda new, old: seen.append((new, old)))
        with vtx.pause(app):
            s["n"] = 2
        s["n"] = 3
        assert seen == [(3, 2)]

    def test_fires_when_safe(self):
        app = _MockApp()
        s = reactive({"n": 1})
        seen = []
        vtx.watch(app, lambda: s["n"], lambda new, old: seen.append((new, old)))
        s["n"] = 2
        assert seen == [(2, 1)]

    def test_immediate(self):
        app = _MockApp()
        s = reactive({"n": 1})
        seen = []
        vtx.watch(app, lambda: s["n"], lambda new, old: seen.append((new, old)), immediate=True)
        assert seen == [(1, None)]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are swallowed."""
        app = _MockApp()
        s = reactive({"n": 1})

        def _raise_nomatch(new, old):
            raise NoMatches("StatusFooter")

        handle = vtx.watch(app, lambda: s["n"], _raise_nomatch)
        s["n"] = 2
        handle.dispose()

    def test_propagates_real_errors(self):
        app = _MockApp()
        s = reactive({"n": 1})

        def _raise_value_error(new, old):
            raise ValueError("boom")

        vtx.watch(app, lambda: s["n"], _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            s["n"] = 2

    def test_dispose_stops_watch(self):
        app = _MockApp()
        s = reactive({"n": 1})
        seen = []
        handle = vtx.watch(app, lambda: s["n"], lambda new, old: seen.append(new))
        s["n"] = 2
        handle.dispose()
        s["n"] = 3
        assert seen == [2]

    def test_thread_marshal(self):
        """Changes made on a background thread reach the callback via call_from_thread."""
        app = _MockApp()
        s = reactive({"n": 1})
        seen = []
        vtx.watch(app, lambda: s["n"], lambda new, old: seen.append(new))

        t = threading.Thread(target=lambda: s.__setitem__("n", 2))
        t.start()
        t.join()

        assert seen == [2]
        assert len(app._call_from_thread_log) == 1


class TestEffect:
    def test_runs_immediately_when_safe(self):
        app = _MockApp()
        s = reactive({"n": 1})
        log = []
        vtx.effect(app, lambda: log.append(s["n"]))
        assert log == [1]
        s["n"] = 2
        assert log == [1, 2]

    def test_skips_during_pause(self):
        app = _MockApp()
        s = reactive({"n": 1})
        log = []
        vtx.effect(app, lambda: log.append(s["n"]))
        with vtx.pause(app):
            s["n"] = 2
        assert log == [1]

    def test_catches_nomatch(self):
        app = _MockApp()
        s = reactive({"n": 1})
        calls = [0]

        def _fn():
            calls[0] += 1
            s["n"]
            if calls[0] > 1:
                raise NoMatches("Widget")

        vtx.effect(app, _fn)
        s["n"] = 2
        assert calls[0] == 2

    def test_dispose(self):
        app = _MockApp()
        s = reactive({"n": 1})
        log = []
        runner = vtx.effect(app, lambda: log.append(s["n"]))
        runner.dispose()
        s["n"] = 2
        assert log == [1]


class TestRender:
    def test_renders_and_updates(self):
        app = _MockApp()
        s = reactive({"done": 1, "total": 3})
        out = []
        vtx.render(app, "{{ done }}/{{ total }}", s, out.append)
        s["done"] = 2
        assert out == ["1/3", "2/3"]

    def test_tracking_survives_pause(self):
        app = _MockApp()
        s = reactive({"done": 1})
        out = []
        vtx.render(app, "{{ done }}", s, out.append)
        with vtx.pause(app):
            s["done"] = 2
        s["done"] = 3
        assert out == ["1", "3"]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert vtx.is_safe(app)

        with pytest.raises(RuntimeError):
            with vtx.pause(app):
                assert not vtx.is_safe(app)
                raise RuntimeError("oops")

        assert vtx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with vtx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with vtx.pause(app_a):
            assert not vtx.is_safe(app_a)
            assert vtx.is_safe(app_b)
