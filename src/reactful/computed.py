"""Computed values — derived state with automatic dependency tracking.

A ComputedRef wraps a getter. When read, it runs the getter as an effect,
tracking what the getter reads, and caches the result. When any dependency
changes, the cached value is marked dirty and the computed's own readers are
notified. It never recomputes eagerly — that happens on the next .value read,
and at most once per invalidation.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Mapping, TypeVar

from reactful._tracking import Dep
from reactful.effect import ReactiveEffect
from reactful.ref import track_ref_value, trigger_ref_value

T = TypeVar("T")

ComputedGetter = Callable[[], T]
ComputedSetter = Callable[[T], None]

logger = logging.getLogger("reactful.computed")


class ComputedRef(Generic[T]):
    """A lazily evaluated, cached derived value."""

    __slots__ = ("dep", "effect", "_value", "_dirty", "_setter", "__weakref__")

    __is_ref__ = True

    def __init__(self, getter: ComputedGetter[T], setter: ComputedSetter[T] | None = None) -> None:
        self.dep: Dep | None = None
        self._value: T | None = None
        self._dirty = True
        self._setter = setter
        self.effect: ReactiveEffect[T] = ReactiveEffect(getter, self._invalidate)
        self.effect.computed = self

    def _invalidate(self) -> None:
        """Scheduler of the internal effect: mark dirty once, tell readers."""
        if not self._dirty:
            self._dirty = True
            trigger_ref_value(self)

    @property
    def value(self) -> T:
        track_ref_value(self)
        if self._dirty:
            self._dirty = False
            try:
                self._value = self.effect.run()
            except Exception:
                self._dirty = True
                raise
        return self._value  # type: ignore[return-value]

    @value.setter
    def value(self, new_value: T) -> None:
        if self._setter is None:
            logger.warning("write ignored: computed value is read-only (%r)", self)
            return
        self._setter(new_value)

    @property
    def readonly(self) -> bool:
        return self._setter is None

    def stop(self) -> None:
        """Disconnect from all dependencies; the next read recomputes untracked."""
        self.effect.stop()
        self._dirty = True

    def __repr__(self) -> str:
        fn = self.effect.fn
        name = getattr(fn, "__name__", type(fn).__name__)
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        return f"ComputedRef({name}, {state})"


def computed(
    getter_or_options: ComputedGetter[T] | Mapping[str, Any],
    setter: ComputedSetter[T] | None = None,
) -> ComputedRef[T]:
    """Create a ComputedRef from a getter, a getter/setter pair, or {"get": ..., "set": ...}.

    Usage:
        count = ref(1)

        @computed
        def doubled():
            return count.value * 2

        doubled.value  # 2
        count.value = 5
        doubled.value  # 10

        plus_one = computed({
            "get": lambda: count.value + 1,
            "set": lambda v: setattr(count, "value", v - 1),
        })
        plus_one.value = 10  # count.value == 9
    """
    if callable(getter_or_options):
        getter = getter_or_options
    else:
        getter = getter_or_options["get"]
        setter = getter_or_options.get("set", setter)
    return ComputedRef(getter, setter)
