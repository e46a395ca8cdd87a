"""Refs — single mutable cells that track their readers.

A Ref holds one value behind `.value`. Reading `.value` inside an effect
registers the effect; assigning a different value re-runs every registered
effect. Object values are wrapped with reactive() on the way in, so
`r.value["key"] = 1` is tracked too (shallow_ref() skips the wrapping).

Unlike writes through a proxy, assigning an unchanged value does nothing.
"""

from __future__ import annotations

import math
from typing import Any, Generic, TypeVar

from reactful._tracking import Dep, active_effect, track_effects, trigger_effects
from reactful.reactive import is_trackable, to_raw, to_reactive

T = TypeVar("T")


def has_changed(value: Any, old_value: Any) -> bool:
    """Identity for objects, equality for primitives, NaN equal to NaN."""
    if value is old_value:
        return False
    if is_trackable(value) or is_trackable(old_value):
        return True
    if isinstance(value, float) and isinstance(old_value, float):
        if math.isnan(value) and math.isnan(old_value):
            return False
    return bool(value != old_value)


class Ref(Generic[T]):
    """A reactive cell holding one value."""

    __slots__ = ("_raw_value", "_value", "_shallow", "dep", "__weakref__")

    __is_ref__ = True

    def __init__(self, value: T, shallow: bool = False) -> None:
        self._shallow = shallow
        self._raw_value = value if shallow else to_raw(value)
        self._value = value if shallow else to_reactive(value)
        self.dep: Dep | None = None

    @property
    def value(self) -> T:
        track_ref_value(self)
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if not self._shallow:
            new_value = to_raw(new_value)
        if has_changed(new_value, self._raw_value):
            self._raw_value = new_value
            self._value = new_value if self._shallow else to_reactive(new_value)
            trigger_ref_value(self)

    def __repr__(self) -> str:
        kind = "ShallowRef" if self._shallow else "Ref"
        return f"{kind}({self._raw_value!r})"


def track_ref_value(ref: Any) -> None:
    """Register the running effect against a ref-like cell's own dep."""
    if active_effect.get() is not None:
        if ref.dep is None:
            ref.dep = Dep(ref)
        track_effects(ref.dep)


def trigger_ref_value(ref: Any) -> None:
    """Notify a ref-like cell's subscribers (two-phase, like trigger())."""
    if ref.dep is not None:
        trigger_effects(ref.dep)


def ref(value: Any = None) -> Ref:
    """Wrap value in a Ref. A Ref (or Computed) is returned unchanged.

    Usage:
        count = ref(0)
        log = []
        effect(lambda: log.append(count.value))
        count.value = 1  # log == [0, 1]
        count.value = 1  # unchanged, log == [0, 1]
    """
    if is_ref(value):
        return value
    return Ref(value)


def shallow_ref(value: Any = None) -> Ref:
    """Like ref(), but the value is stored as-is and never wrapped."""
    if is_ref(value):
        return value
    return Ref(value, shallow=True)


def is_ref(value: object) -> bool:
    return getattr(value, "__is_ref__", False) is True


def unref(value: Ref[T] | T) -> T:
    """The .value of a ref, or the value itself."""
    return value.value if is_ref(value) else value  # type: ignore[union-attr]
