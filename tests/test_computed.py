"""Tests for Computed values."""

import logging

import pytest

from reactful import ComputedRef, computed, effect, reactive, ref


class TestComputed:
    def test_lazy_eval(self):
        call_count = 0
        o = ref(5)

        def fn():
            nonlocal call_count
            call_count += 1
            return o.value * 2

        c = ComputedRef(fn)
        assert call_count == 0  # not yet evaluated
        assert c.value == 10
        assert call_count == 1

    def test_caches_until_dirty(self):
        n = 0

        def fn():
            nonlocal n
            n += 1
            return n

        c = computed(fn)
        c.value
        c.value
        assert n == 1  # cached, no re-eval

    def test_invalidation(self):
        o = ref(5)
        c = computed(lambda: o.value * 2)
        assert c.value == 10
        o.value = 10
        assert c.value == 20

    def test_recomputes_once_per_invalidation(self):
        calls = []
        a = ref(1)
        b = ref(2)
        c = computed(lambda: calls.append(1) or a.value + b.value)
        c.value
        a.value = 10
        b.value = 20
        assert c.value == 30
        assert c.value == 30
        assert len(calls) == 2

    def test_tracks_reactive_objects(self):
        state = reactive({"items": [1, 2]})
        total = computed(lambda: sum(state["items"]))
        assert total.value == 3
        state["items"].append(3)
        assert total.value == 6

    def test_chained_computed(self):
        o = ref(3)
        doubled = computed(lambda: o.value * 2)
        quadrupled = computed(lambda: doubled.value * 2)
        assert quadrupled.value == 12
        o.value = 5
        assert quadrupled.value == 20

    def test_dirty_cell_does_not_renotify(self):
        """A second dependency change before a re-read notifies nobody."""
        a = ref(1)
        b = ref(2)
        c = computed(lambda: a.value + b.value)
        notified = []
        effect(lambda: c.value, scheduler=lambda: notified.append(True))

        a.value = 10
        b.value = 20
        assert notified == [True]
        assert c.value == 30

    def test_propagates_to_effects(self):
        o = ref(5)
        c = computed(lambda: o.value * 2)
        log = []
        effect(lambda: log.append(c.value))
        assert log == [10]
        o.value = 10
        assert log == [10, 20]

    def test_effects_never_see_stale_value(self):
        """Computed-backed subscribers are notified before plain ones."""
        r = ref(1)
        c = computed(lambda: r.value * 2)
        seen = []
        effect(lambda: seen.append((r.value, c.value)))

        r.value = 2
        assert seen[0] == (1, 2)
        assert seen[-1] == (2, 4)
        assert (2, 2) not in seen

    def test_error_keeps_cell_dirty(self):
        fail = ref(True)

        def fn():
            if fail.value:
                raise ValueError("boom")
            return "ok"

        c = computed(fn)
        with pytest.raises(ValueError):
            c.value
        fail.value = False
        assert c.value == "ok"

    def test_stop(self):
        o = ref(2)
        c = computed(lambda: o.value * 2)
        assert c.value == 4
        c.stop()
        o.value = 3
        assert c.value == 6  # one last untracked evaluation
        o.value = 4
        assert c.value == 6


class TestWritableComputed:
    def test_getter_setter_pair(self):
        count = ref(1)

        def set_plus_one(v):
            count.value = v - 1

        plus_one = computed(lambda: count.value + 1, set_plus_one)
        plus_one.value = 10
        assert count.value == 9
        assert plus_one.value == 10
        assert not plus_one.readonly

    def test_options_mapping(self):
        count = ref(1)
        plus_one = computed({
            "get": lambda: count.value + 1,
            "set": lambda v: setattr(count, "value", v - 1),
        })
        plus_one.value = 5
        assert count.value == 4

    def test_readonly_write_is_ignored(self, caplog):
        c = computed(lambda: 1)
        with caplog.at_level(logging.WARNING, logger="reactful.computed"):
            c.value = 2
        assert c.value == 1
        assert c.readonly
        assert "read-only" in caplog.text


class TestComputedDecorator:
    def test_decorator_factory(self):
        o = ref(7)

        @computed
        def doubled():
            return o.value * 2

        assert doubled.value == 14
        o.value = 3
        assert doubled.value == 6
