"""Tests for action batching, the transaction context manager and untracked()."""

from vivify import action, effect, get_pending_count, reactive, transaction, untracked


class TestAction:
    def test_batches_updates(self):
        s = reactive({"a": 0, "b": 0})
        log = []
        effect(lambda: log.append((s["a"], s["b"])))
        assert log == [(0, 0)]

        @action
        def update_both():
            s["a"] = 1
            s["b"] = 2

        update_both()
        # Should see (1, 2) not intermediate (1, 0)
        assert log == [(0, 0), (1, 2)]

    def test_nested_actions(self):
        s = reactive({"n": 0})
        log = []
        effect(lambda: log.append(s["n"]))

        @action
        def outer():
            s["n"] = 1

            @action
            def inner():
                s["n"] = 2

            inner()
            s["n"] = 3

        outer()
        # Only fires after outermost action completes
        assert log == [0, 3]

    def test_preserves_return_value(self):
        @action
        def compute():
            return 42

        assert compute() == 42

    def test_flushes_on_error(self):
        s = reactive({"n": 0})
        log = []
        effect(lambda: log.append(s["n"]))

        @action
        def fail():
            s["n"] = 1
            raise ValueError("boom")

        try:
            fail()
        except ValueError:
            pass
        assert log == [0, 1]
        assert get_pending_count() == 0


class TestTransaction:
    def test_batches_updates(self):
        s = reactive({"a": 0, "b": 0})
        log = []
        effect(lambda: log.append((s["a"], s["b"])))

        with transaction():
            s["a"] = 10
            s["b"] = 20

        assert log == [(0, 0), (10, 20)]

    def test_nested_transactions(self):
        s = reactive({"n": 0})
        log = []
        effect(lambda: log.append(s["n"]))

        with transaction():
            s["n"] = 1
            with transaction():
                s["n"] = 2
            s["n"] = 3

        assert log == [0, 3]

    def test_pending_count(self):
        s = reactive({"a": 0, "b": 0})
        effect(lambda: (s["a"], s["b"]))
        effect(lambda: s["a"])

        with transaction():
            s["a"] = 1
            s["b"] = 1
            assert get_pending_count() == 2
        assert get_pending_count() == 0

    def test_effects_run_in_first_trigger_order(self):
        s = reactive({"a": 0, "b": 0})
        order = []
        effect(lambda: s["b"] is not None and order.append("b"))
        effect(lambda: s["a"] is not None and order.append("a"))
        order.clear()

        with transaction():
            s["a"] = 1
            s["b"] = 1

        assert order == ["a", "b"]

    def test_bulk_operations_batch(self):
        lst = reactive([])
        log = []
        effect(lambda: log.append(len(lst)))
        lst.extend([1, 2, 3])
        m = reactive({})
        mlog = []
        effect(lambda: mlog.append(dict(m)))
        m.update(a=1, b=2, c=3)
        assert log == [0, 3]
        assert mlog == [{}, {"a": 1, "b": 2, "c": 3}]


class TestUntracked:
    def test_outside_effect(self):
        s = reactive({"n": 1})
        with untracked():
            assert s["n"] == 1

    def test_restores_tracking(self):
        s = reactive({"a": 0, "b": 0})
        log = []

        def fn():
            with untracked():
                s["a"]
            log.append(s["b"])

        effect(fn)
        s["a"] = 1
        s["b"] = 1
        assert log == [0, 1]
