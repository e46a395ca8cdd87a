"""watch() — call back with (new, old) when a reactive source changes.

The source is read inside an effect whose scheduler queues a job on the
batching scheduler instead of re-running immediately. Several writes in the
same synchronous burst therefore produce one callback, on the next tick,
with the latest value and the value from before the burst.

Sources:
- a reactive proxy: watched deeply (every nested read is tracked), the
  callback fires on any change with the proxy as both new and old value;
- a Ref or Computed: its .value;
- a zero-argument callable: its return value;
- a list/tuple of the above: a list of their values.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable

from reactful import _tracking
from reactful._tracking import ITERATE_KEY
from reactful.effect import ReactiveEffect
from reactful.reactive import ReactiveObject, is_reactive, is_trackable, to_raw
from reactful.ref import has_changed, is_ref
from reactful.scheduler import queue_job

WatchCallback = Callable[[Any, Any], object]

logger = logging.getLogger("reactful.watch")

_INITIAL = object()


class WatchHandle:
    """Stop handle for a watcher. Calling the handle stops it too."""

    __slots__ = ("_effect",)

    def __init__(self, effect: ReactiveEffect) -> None:
        self._effect = effect

    @property
    def effect(self) -> ReactiveEffect:
        return self._effect

    @property
    def stopped(self) -> bool:
        return not self._effect.active

    def stop(self) -> None:
        """Unsubscribe. A job already queued for this watcher does nothing."""
        self._effect.stop()

    def __call__(self) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"WatchHandle({'stopped' if self.stopped else 'active'})"


def _source_getter(source: Any) -> Callable[[], Any] | None:
    if is_reactive(source):
        return lambda: source
    if is_ref(source):
        return lambda: source.value
    if callable(source):
        return source
    return None


def watch(
    source: Any,
    callback: WatchCallback | None,
    *,
    immediate: bool = False,
    deep: bool = False,
) -> WatchHandle:
    """Call callback(new_value, old_value) after source changes.

    With immediate=True the callback runs once right away with old_value None.
    Otherwise the source is read once to prime dependency tracking and the
    callback waits for the first change.

    Returns a WatchHandle (call it, or its .stop(), to stop watching).

    Usage:
        count = ref(0)
        seen = []
        watch(count, lambda new, old: seen.append((new, old)))

        count.value = 1
        count.value = 2
        # seen == [], the callback is queued for the next tick
        await next_tick()
        # seen == [(2, 0)]
    """
    multi_source = isinstance(source, (list, tuple))

    if multi_source:
        getters = []
        for item in source:
            item_getter = _source_getter(item)
            if item_getter is None:
                logger.warning("invalid watch source: %r", item)
                item_getter = lambda: None  # noqa: E731
            getters.append(item_getter)
        deep = deep or any(is_reactive(item) for item in source)
        getter: Callable[[], Any] = lambda: [g() for g in getters]  # noqa: E731
    else:
        source_getter = _source_getter(source)
        if source_getter is None:
            logger.warning("invalid watch source: %r", source)
            source_getter = lambda: None  # noqa: E731
        elif is_reactive(source):
            deep = True
        getter = source_getter

    if callback is not None and deep:
        base_getter = getter
        getter = lambda: traverse(base_getter())  # noqa: E731

    old_value: Any = _INITIAL

    def changed(new_value: Any) -> bool:
        if deep or old_value is _INITIAL:
            return True
        if multi_source:
            return any(has_changed(v, o) for v, o in zip(new_value, old_value))
        return has_changed(new_value, old_value)

    def job() -> None:
        nonlocal old_value
        if not _effect.active:
            return
        if callback is None:
            _effect.run()
            return
        new_value = _effect.run()
        if changed(new_value):
            callback(new_value, None if old_value is _INITIAL else old_value)
            old_value = new_value

    _effect = ReactiveEffect(getter, lambda: queue_job(job))

    if callback is not None:
        if immediate:
            job()
        else:
            old_value = _effect.run()
    else:
        _effect.run()

    return WatchHandle(_effect)


def traverse(value: Any, seen: set[int] | None = None) -> Any:
    """Read every member of value's object graph so each level is tracked.

    Visits proxies, Refs, dicts, lists and instance attributes. Each raw
    object is visited once, so cyclic graphs terminate. Returns value.
    """
    if seen is None:
        seen = set()
    if is_ref(value):
        traverse(value.value, seen)
        return value
    raw = to_raw(value)
    if not is_trackable(raw) or id(raw) in seen:
        return value
    seen.add(id(raw))

    if isinstance(value, Mapping):
        for key in value:
            traverse(value[key], seen)
    elif isinstance(raw, list):
        for item in value:
            traverse(item, seen)
    else:
        if isinstance(value, ReactiveObject):
            _tracking.track(raw, ITERATE_KEY)
        for name in list(vars(raw)):
            traverse(getattr(value, name), seen)
    return value
