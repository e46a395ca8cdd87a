"""Tests for Ref cells and change detection."""

from reactful import computed, effect, is_reactive, is_ref, reactive, ref, shallow_ref, unref
from reactful.ref import has_changed


class TestRef:
    def test_read_write(self):
        count = ref(0)
        log = []
        effect(lambda: log.append(count.value))
        count.value = 1
        assert log == [0, 1]

    def test_unchanged_write_is_skipped(self):
        count = ref(1)
        log = []
        effect(lambda: log.append(count.value))
        count.value = 1
        assert log == [1]

    def test_proxy_writes_notify_but_ref_writes_do_not(self):
        """Asymmetry: proxies notify on every write, refs compare first."""
        state = reactive({"x": 1})
        count = ref(1)
        state_log = []
        ref_log = []
        effect(lambda: state_log.append(state["x"]))
        effect(lambda: ref_log.append(count.value))

        state["x"] = 1
        count.value = 1

        assert state_log == [1, 1]
        assert ref_log == [1]

    def test_equal_but_distinct_objects_notify(self):
        items = ref([1])
        log = []
        effect(lambda: log.append(list(items.value)))
        items.value = [1]
        assert log == [[1], [1]]

    def test_object_values_are_wrapped(self):
        user = ref({"name": "ann"})
        assert is_reactive(user.value)
        log = []
        effect(lambda: log.append(user.value["name"]))
        user.value["name"] = "bob"
        assert log == ["ann", "bob"]

    def test_assigning_own_proxy_is_unchanged(self):
        user = ref({"name": "ann"})
        log = []
        effect(lambda: log.append(user.value))
        user.value = user.value
        assert len(log) == 1

    def test_ref_of_ref_is_same(self):
        count = ref(1)
        assert ref(count) is count

    def test_no_value(self):
        assert ref().value is None


class TestShallowRef:
    def test_not_wrapped(self):
        raw = {"a": 1}
        box = shallow_ref(raw)
        assert box.value is raw
        assert not is_reactive(box.value)

    def test_replacing_value_notifies(self):
        box = shallow_ref({"a": 1})
        log = []
        effect(lambda: log.append(box.value["a"]))
        box.value["a"] = 2  # raw dict: not tracked
        box.value = {"a": 3}
        assert log == [1, 3]


class TestHelpers:
    def test_is_ref(self):
        assert is_ref(ref(1))
        assert is_ref(computed(lambda: 1))
        assert not is_ref(1)
        assert not is_ref(reactive({}))

    def test_unref(self):
        assert unref(ref(5)) == 5
        assert unref(5) == 5

    def test_has_changed(self):
        nan = float("nan")
        obj = {"a": 1}
        assert not has_changed(1, 1)
        assert has_changed(1, 2)
        assert not has_changed(nan, float("nan"))
        assert not has_changed(obj, obj)
        assert has_changed({"a": 1}, obj)
        assert not has_changed("a", "a")
