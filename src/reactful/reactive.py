"""Reactive proxies — tracked views over plain dicts, lists and objects.

reactive(obj) returns a proxy that reads and writes through to obj, except
that every read records the running effect against the (obj, key) pair and
every write notifies the effects recorded for it. Values read through a
proxy are wrapped on the way out, so nested containers are tracked too;
values written through a proxy are unwrapped on the way in, so the raw
object graph never contains proxies.

Writes always notify, even when the new value equals the old one. Only
Ref and Computed cells short-circuit unchanged writes.

Proxies are cached per raw object: reactive(obj) is reactive(obj).
"""

from __future__ import annotations

import enum
import functools
import inspect
import logging
import operator
import sys
import types
from collections.abc import MutableMapping, MutableSequence
from typing import Any, Iterable, Iterator, TypeVar

from reactful import _anchor
from reactful._tracking import ITERATE_KEY, track, trigger, trigger_keys

T = TypeVar("T")

logger = logging.getLogger("reactful.reactive")

_MISSING = object()

_NOT_TRACKABLE = (
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    functools.partial,
    enum.Enum,
)


class ReactiveProxy:
    """Base class of all proxies. `__reactive__` marks a tracked view."""

    __slots__ = ("_reactive_raw", "__weakref__")

    __reactive__ = True

    def __init__(self, raw: Any) -> None:
        object.__setattr__(self, "_reactive_raw", raw)

    def __repr__(self) -> str:
        return f"reactive({self._reactive_raw!r})"


class ReactiveDict(ReactiveProxy, MutableMapping):
    """Tracked view over a dict. Keys are the tracked properties."""

    __slots__ = ()

    def __getitem__(self, key: Any) -> Any:
        raw = self._reactive_raw
        track(raw, key)
        return to_reactive(raw[key])

    def __setitem__(self, key: Any, value: Any) -> None:
        raw = self._reactive_raw
        added = key not in raw
        raw[key] = to_raw(value)
        if added:
            trigger_keys(raw, (key, ITERATE_KEY))
        else:
            trigger(raw, key, value)

    def __delitem__(self, key: Any) -> None:
        raw = self._reactive_raw
        del raw[key]
        trigger_keys(raw, (key, ITERATE_KEY))

    def __contains__(self, key: object) -> bool:
        raw = self._reactive_raw
        track(raw, key)
        return key in raw

    def __iter__(self) -> Iterator[Any]:
        raw = self._reactive_raw
        track(raw, ITERATE_KEY)
        return iter(raw)

    def __len__(self) -> int:
        raw = self._reactive_raw
        track(raw, ITERATE_KEY)
        return len(raw)

    def pop(self, key: Any, *default: Any) -> Any:
        raw = self._reactive_raw
        if key not in raw:
            return raw.pop(key, *default)
        value = raw.pop(key)
        trigger_keys(raw, (key, ITERATE_KEY))
        return to_reactive(value)

    def popitem(self) -> tuple[Any, Any]:
        raw = self._reactive_raw
        key, value = raw.popitem()
        trigger_keys(raw, (key, ITERATE_KEY))
        return key, to_reactive(value)

    def clear(self) -> None:
        raw = self._reactive_raw
        keys = list(raw)
        raw.clear()
        if keys:
            trigger_keys(raw, [*keys, ITERATE_KEY])


class ReactiveList(ReactiveProxy, MutableSequence):
    """Tracked view over a list.

    Reading l[i] records index i; whole-list reads (len, iteration, slices,
    membership) record ITERATE_KEY. Structural writes notify ITERATE_KEY and
    every index whose item may have moved.
    """

    __slots__ = ()

    def __getitem__(self, index: Any) -> Any:
        raw = self._reactive_raw
        if isinstance(index, slice):
            track(raw, ITERATE_KEY)
            return [to_reactive(item) for item in raw[index]]
        index = operator.index(index)
        # negative indexes depend on the length
        track(raw, index if index >= 0 else ITERATE_KEY)
        return to_reactive(raw[index])

    def __setitem__(self, index: Any, value: Any) -> None:
        raw = self._reactive_raw
        old_len = len(raw)
        if isinstance(index, slice):
            start = min(range(*index.indices(old_len)), default=old_len)
            raw[index] = [to_raw(item) for item in value]
            self._trigger_shifted(start, old_len)
            return
        index = operator.index(index)
        raw[index] = to_raw(value)
        if index < 0:
            index += old_len
        trigger_keys(raw, (index, ITERATE_KEY))

    def __delitem__(self, index: Any) -> None:
        raw = self._reactive_raw
        old_len = len(raw)
        if isinstance(index, slice):
            start = min(range(*index.indices(old_len)), default=old_len)
        else:
            start = operator.index(index)
            if start < 0:
                start += old_len
        del raw[index]
        self._trigger_shifted(start, old_len)

    def __len__(self) -> int:
        raw = self._reactive_raw
        track(raw, ITERATE_KEY)
        return len(raw)

    def __iter__(self) -> Iterator[Any]:
        raw = self._reactive_raw
        track(raw, ITERATE_KEY)
        return (to_reactive(item) for item in raw)

    def __contains__(self, value: object) -> bool:
        raw = self._reactive_raw
        track(raw, ITERATE_KEY)
        return to_raw(value) in raw

    def __eq__(self, other: object) -> bool:
        raw = self._reactive_raw
        track(raw, ITERATE_KEY)
        return raw == to_raw(other)

    __hash__ = None  # type: ignore[assignment]

    def index(self, value: Any, start: int = 0, stop: int = sys.maxsize) -> int:
        raw = self._reactive_raw
        track(raw, ITERATE_KEY)
        return raw.index(to_raw(value), start, stop)

    def count(self, value: Any) -> int:
        raw = self._reactive_raw
        track(raw, ITERATE_KEY)
        return raw.count(to_raw(value))

    # --- Write operations (notify, never track) ---

    def insert(self, index: int, value: Any) -> None:
        raw = self._reactive_raw
        old_len = len(raw)
        raw.insert(index, to_raw(value))
        start = index + old_len if index < 0 else index
        self._trigger_shifted(min(max(start, 0), old_len), old_len)

    def append(self, value: Any) -> None:
        raw = self._reactive_raw
        old_len = len(raw)
        raw.append(to_raw(value))
        self._trigger_shifted(old_len, old_len)

    def extend(self, values: Iterable[Any]) -> None:
        raw = self._reactive_raw
        old_len = len(raw)
        raw.extend([to_raw(value) for value in values])
        self._trigger_shifted(old_len, old_len)

    def pop(self, index: int = -1) -> Any:
        raw = self._reactive_raw
        old_len = len(raw)
        value = raw.pop(index)
        self._trigger_shifted(index + old_len if index < 0 else index, old_len)
        return to_reactive(value)

    def remove(self, value: Any) -> None:
        raw = self._reactive_raw
        old_len = len(raw)
        position = raw.index(to_raw(value))
        del raw[position]
        self._trigger_shifted(position, old_len)

    def clear(self) -> None:
        raw = self._reactive_raw
        old_len = len(raw)
        raw.clear()
        self._trigger_shifted(0, old_len)

    def reverse(self) -> None:
        raw = self._reactive_raw
        raw.reverse()
        self._trigger_shifted(0, len(raw))

    def sort(self, *, key: Any = None, reverse: bool = False) -> None:
        raw = self._reactive_raw
        raw.sort(key=key, reverse=reverse)
        self._trigger_shifted(0, len(raw))

    def _trigger_shifted(self, start: int, old_len: int) -> None:
        raw = self._reactive_raw
        trigger_keys(raw, [*range(start, max(old_len, len(raw))), ITERATE_KEY])


class ReactiveObject(ReactiveProxy):
    """Tracked view over a class instance. Attribute names are the tracked properties.

    Properties and methods found on the instance's class run with the proxy
    as `self`, so whatever they read or write is tracked as well. Special
    methods (len(), iteration, operators) are not forwarded.
    """

    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        raw = self._reactive_raw
        attr = inspect.getattr_static(type(raw), name, _MISSING)
        if isinstance(attr, property):
            value = attr.__get__(self)
        elif isinstance(attr, types.FunctionType) and name not in vars(raw):
            return types.MethodType(attr, self)
        else:
            value = getattr(raw, name)
        track(raw, name)
        return to_reactive(value)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "__reactive__":
            raise AttributeError("__reactive__ is read-only")
        raw = self._reactive_raw
        added = name not in vars(raw)
        attr = inspect.getattr_static(type(raw), name, _MISSING)
        if isinstance(attr, property) and attr.fset is not None:
            added = False
            attr.__set__(self, value)
        else:
            setattr(raw, name, to_raw(value))
        if added:
            trigger_keys(raw, (name, ITERATE_KEY))
        else:
            trigger(raw, name, value)

    def __delattr__(self, name: str) -> None:
        raw = self._reactive_raw
        delattr(raw, name)
        trigger_keys(raw, (name, ITERATE_KEY))

    def __dir__(self) -> list[str]:
        return dir(self._reactive_raw)


def is_trackable(value: object) -> bool:
    """Can `value` be wrapped by reactive()? Primitives and callables cannot."""
    if isinstance(value, ReactiveProxy):
        return False
    if isinstance(value, (dict, list)):
        return True
    if getattr(value, "__is_ref__", False) is True:
        return False
    return hasattr(value, "__dict__") and not isinstance(value, _NOT_TRACKABLE)


def reactive(target: T) -> T:
    """Return the tracked view of target. Idempotent: same object in, same proxy out.

    Usage:
        state = reactive({"count": 0})
        assert reactive(state) is state
        assert is_reactive(state)
    """
    if isinstance(target, ReactiveProxy):
        return target
    if not is_trackable(target):
        logger.warning("value cannot be made reactive: %r", target)
        return target

    existing = _anchor.proxies.get(id(target))
    if existing is not None:
        return existing

    if isinstance(target, dict):
        proxy: ReactiveProxy = ReactiveDict(target)
    elif isinstance(target, list):
        proxy = ReactiveList(target)
    else:
        proxy = ReactiveObject(target)
    _anchor.proxies[id(target)] = proxy
    return proxy  # type: ignore[return-value]


def is_reactive(value: object) -> bool:
    return isinstance(value, ReactiveProxy)


def to_raw(value: T) -> T:
    """The raw object behind a proxy; anything else is returned unchanged."""
    if isinstance(value, ReactiveProxy):
        return value._reactive_raw
    return value


def to_reactive(value: T) -> T:
    """Wrap trackable values, pass primitives through."""
    return reactive(value) if is_trackable(value) else value
