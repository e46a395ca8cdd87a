"""Dependency tracking engine — the heart of reactful.

Uses contextvars to track which effect is running, so that every tracked read
(a proxy property, a Ref or a Computed .value) registers that effect as a
subscriber of the (object, key) pair it read. Writes call trigger(), which
re-runs or schedules every subscriber.

Triggering is two-phase: effects backing a Computed are notified before plain
effects, so a plain effect reading a Computed in the same wave always sees the
already-invalidated cell and recomputes it instead of reading a stale cache.
"""

from __future__ import annotations

import contextvars
import weakref
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from reactful import _anchor

if TYPE_CHECKING:
    from reactful.effect import ReactiveEffect

# The currently-running effect. Each run() sets it with a token and resets it
# on exit, so nested runs restore the outer effect.
active_effect: contextvars.ContextVar[ReactiveEffect | None] = contextvars.ContextVar(
    "active_effect", default=None
)


class _IterateKey:
    __slots__ = ()

    def __repr__(self) -> str:
        return "ITERATE_KEY"


# Key recorded by whole-container reads (len, iteration) and notified by
# structural writes (keys added or removed, list items shifted).
ITERATE_KEY: Any = _IterateKey()


class Dep:
    """The set of effects interested in one (object, key) pair.

    Insertion-ordered, membership only. `owner` keeps whatever the dep hangs
    off (a KeyToDepMap, a Ref, a Computed) alive for as long as an effect
    holds the dep. A dep in a KeyToDepMap leaves the map once its last
    subscriber is gone.
    """

    __slots__ = ("owner", "key", "_subs")

    def __init__(self, owner: object = None, key: Any = None) -> None:
        self.owner = owner
        self.key = key
        self._subs: dict[ReactiveEffect, None] = {}

    def add(self, effect: ReactiveEffect) -> None:
        self._subs[effect] = None

    def discard(self, effect: ReactiveEffect) -> None:
        self._subs.pop(effect, None)
        if not self._subs and isinstance(self.owner, KeyToDepMap):
            self.owner.release(self)

    def __contains__(self, effect: object) -> bool:
        return effect in self._subs

    def __len__(self) -> int:
        return len(self._subs)

    def __iter__(self) -> Iterator[ReactiveEffect]:
        return iter(self._subs)

    def __repr__(self) -> str:
        return f"Dep({len(self._subs)} subscribers)"


class KeyToDepMap:
    """Property key -> Dep for one raw object, indexed in _anchor.targets by id().

    For a raw object that can't be weakly referenced, the map holds it
    strongly (its id() must stay unique while indexed) and unindexes itself
    when its last dep is released.
    """

    __slots__ = ("key", "raw", "deps")

    def __init__(self, key: int, raw: object = None) -> None:
        self.key = key
        self.raw = raw
        self.deps: dict[Any, Dep] = {}

    def get(self, key: Any) -> Dep | None:
        return self.deps.get(key)

    def dep_for(self, key: Any) -> Dep:
        dep = self.deps.get(key)
        if dep is None:
            dep = self.deps[key] = Dep(self, key)
        return dep

    def release(self, dep: Dep) -> None:
        if self.deps.get(dep.key) is dep:
            del self.deps[dep.key]
        if not self.deps and self.raw is not None and _anchor.targets.get(self.key) is self:
            _anchor.forget(self.key)


def get_dep_map(raw: object, create: bool = False) -> KeyToDepMap | None:
    """Look up (optionally create) the dependency map for a raw object."""
    key = id(raw)
    dep_map = _anchor.targets.get(key)
    if dep_map is None and create:
        try:
            weakref.finalize(raw, _anchor.forget, key)
        except TypeError:
            # dict, list: no weak references, so the map pins the object instead
            dep_map = KeyToDepMap(key, raw)
        else:
            dep_map = KeyToDepMap(key)
        _anchor.targets[key] = dep_map
    return dep_map


def track(raw: object, key: Any) -> None:
    """Record that the running effect read `key` of `raw`. No-op outside an effect."""
    if active_effect.get() is None:
        return
    dep_map = get_dep_map(raw, create=True)
    track_effects(dep_map.dep_for(key))


def track_effects(dep: Dep) -> None:
    """Subscribe the running effect to `dep` (set semantics)."""
    effect = active_effect.get()
    if effect is None or effect in dep:
        return
    dep.add(effect)
    effect.deps.append(dep)


def trigger(raw: object, key: Any, new_value: Any = None) -> None:
    """Notify every effect subscribed to `key` of `raw`. No-op without subscribers."""
    trigger_keys(raw, (key,))


def trigger_keys(raw: object, keys: Iterable[Any]) -> None:
    """Notify the subscribers of several keys of `raw` in one wave; each effect once."""
    dep_map = get_dep_map(raw)
    if dep_map is None:
        return
    effects: dict[ReactiveEffect, None] = {}
    for key in keys:
        dep = dep_map.get(key)
        if dep is not None:
            effects.update(dict.fromkeys(dep))
    if effects:
        trigger_effects(effects)


def trigger_effects(dep: Iterable[ReactiveEffect]) -> None:
    """Two-phase notify over a snapshot of `dep`: computed-backed effects first."""
    effects = list(dep)
    for effect in effects:
        if effect.computed is not None:
            trigger_effect(effect)
    for effect in effects:
        if effect.computed is None:
            trigger_effect(effect)


def trigger_effect(effect: ReactiveEffect) -> None:
    # An effect never re-triggers itself while running (writes to what it reads).
    if effect is active_effect.get():
        return
    if effect.scheduler is not None:
        effect.scheduler()
    else:
        effect.run()
