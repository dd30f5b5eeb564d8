"""Tests for watch() and WatchHandle."""

from dataclasses import dataclass

import pytest

from vivify import computed, reactive, transaction, watch


@dataclass(slots=True)
class Point:
    x: int
    y: int


class TestWatchGetter:
    def test_no_initial_callback(self):
        s = reactive({"n": "a"})
        seen = []
        watch(lambda: s["n"], lambda new, old: seen.append(new))
        assert seen == []

    def test_fires_on_change_with_old_value(self):
        s = reactive({"n": "a"})
        seen = []
        watch(lambda: s["n"], lambda new, old: seen.append((new, old)))
        s["n"] = "b"
        s["n"] = "c"
        assert seen == [("b", "a"), ("c", "b")]

    def test_immediate(self):
        s = reactive({"n": "a"})
        seen = []
        watch(lambda: s["n"], lambda new, old: seen.append((new, old)), immediate=True)
        assert seen == [("a", None)]
        s["n"] = "b"
        assert seen == [("a", None), ("b", "a")]

    def test_dedup_unchanged_result(self):
        """The callback only fires when the getter's result actually changes."""
        s = reactive({"n": 1})
        seen = []
        watch(lambda: "even" if s["n"] % 2 == 0 else "odd", lambda new, old: seen.append(new))
        s["n"] = 3  # still odd
        assert seen == []
        s["n"] = 4
        assert seen == ["even"]

    def test_callback_reads_are_not_tracked(self):
        s = reactive({"watched": 0, "other": 0})
        seen = []
        watch(lambda: s["watched"], lambda new, old: seen.append((new, s["other"])))
        s["watched"] = 1
        s["other"] = 5
        assert seen == [(1, 0)]

    def test_batched_writes_fire_once(self):
        s = reactive({"a": 0, "b": 0})
        seen = []
        watch(lambda: (s["a"], s["b"]), lambda new, old: seen.append(new))
        with transaction():
            s["a"] = 1
            s["b"] = 2
        assert seen == [(1, 2)]


class TestWatchSources:
    def test_reactive_source_is_deep(self):
        s = reactive({"user": {"name": "Ada", "tags": []}})
        seen = []
        watch(s, lambda new, old: seen.append(new))
        s["user"]["name"] = "Grace"
        s["user"]["tags"].append("admiral")
        assert len(seen) == 2
        assert seen[0] is s

    def test_deep_getter(self):
        s = reactive({"user": {"name": "Ada"}})
        shallow, deep = [], []
        watch(lambda: s["user"], lambda new, old: shallow.append(new))
        watch(lambda: s["user"], lambda new, old: deep.append(new), deep=True)
        s["user"]["name"] = "Grace"
        assert shallow == []
        assert len(deep) == 1

    def test_deep_handles_cycles(self):
        raw = {"name": "loop"}
        raw["self"] = raw
        s = reactive(raw)
        seen = []
        watch(s, lambda new, old: seen.append(new))
        s["name"] = "still a loop"
        assert len(seen) == 1

    def test_deep_slotted_dataclass(self):
        p = reactive(Point(1, 2))
        seen = []
        watch(p, lambda new, old: seen.append(new.x))
        p.x = 5
        assert seen == [5]

    def test_computed_source(self):
        s = reactive({"n": 2})
        doubled = computed(lambda: s["n"] * 2)
        seen = []
        watch(doubled, lambda new, old: seen.append((new, old)))
        s["n"] = 3
        assert seen == [(6, 4)]

    def test_multiple_sources(self):
        s = reactive({"a": 1, "b": 2})
        total = computed(lambda: s["a"] + s["b"])
        seen = []
        watch([lambda: s["a"], total], lambda new, old: seen.append((new, old)))
        s["b"] = 10
        assert seen == [([1, 11], [1, 3])]

    def test_multiple_sources_with_reactive(self):
        s = reactive({"a": 1})
        nested = reactive({"x": {"y": 1}})
        seen = []
        watch([lambda: s["a"], nested], lambda new, old: seen.append(new))
        nested["x"]["y"] = 2
        assert len(seen) == 1

    def test_invalid_source(self):
        with pytest.raises(TypeError, match="watch source"):
            watch(42, lambda new, old: None)


class TestWatchHandle:
    def test_dispose(self):
        s = reactive({"n": 1})
        seen = []
        handle = watch(lambda: s["n"], lambda new, old: seen.append(new))
        s["n"] = 2
        handle.dispose()
        s["n"] = 3
        assert seen == [2]
        assert handle.disposed

    def test_calling_handle_unwatches(self):
        s = reactive({"n": 1})
        seen = []
        stop = watch(lambda: s["n"], lambda new, old: seen.append(new))
        stop()
        stop()
        s["n"] = 2
        assert seen == []
