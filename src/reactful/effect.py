"""Reactive effects — re-runnable computations that subscribe to what they read.

Running an effect makes it the active effect for the duration of the run, so
every tracked read inside it subscribes the effect. When any of those
dependencies is written, the effect re-runs, or, if it carries a scheduler,
the scheduler is called instead and decides when (and whether) to re-run.

Dependencies are dynamic: before each run the effect leaves every dep it
joined, then re-joins whatever the new run reads.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from reactful import _anchor, _tracking
from reactful._tracking import Dep, active_effect
from reactful.reactive import to_raw

if TYPE_CHECKING:
    from reactful.computed import ComputedRef

T = TypeVar("T")

EffectScheduler = Callable[[], Any]

logger = logging.getLogger("reactful.effect")


class ReactiveEffect(Generic[T]):
    """A re-runnable unit of computation."""

    __slots__ = ("id", "fn", "scheduler", "computed", "deps", "active", "__weakref__")

    def __init__(self, fn: Callable[[], T], scheduler: EffectScheduler | None = None) -> None:
        self.id = _anchor.new_id()
        self.fn = fn
        self.scheduler = scheduler
        self.computed: ComputedRef | None = None
        self.deps: list[Dep] = []
        self.active = True

    def run(self) -> T:
        """Run fn as the active effect and return its result."""
        if not self.active:
            return self.fn()

        self._cleanup()
        token = active_effect.set(self)
        try:
            return self.fn()
        finally:
            active_effect.reset(token)

    def stop(self) -> None:
        """Unsubscribe from every dependency. Later runs no longer track."""
        if self.active:
            self._cleanup()
            self.active = False
            logger.debug("stopped %r", self)

    def _cleanup(self) -> None:
        for dep in self.deps:
            dep.discard(self)
        self.deps.clear()

    def __repr__(self) -> str:
        name = getattr(self.fn, "__name__", type(self.fn).__name__)
        state = "active" if self.active else "stopped"
        return f"ReactiveEffect#{self.id}({name}, {state}, {len(self.deps)} deps)"


def effect(
    fn: Callable[[], T],
    *,
    lazy: bool = False,
    scheduler: EffectScheduler | None = None,
) -> ReactiveEffect[T]:
    """Run fn immediately, then re-run it whenever anything it read changes.

    With lazy=True the first run is left to the caller. With a scheduler, the
    scheduler is called on every change instead of re-running fn.

    Returns the ReactiveEffect (call .stop() to unsubscribe).

    Usage:
        state = reactive({"count": 0})
        log = []

        effect(lambda: log.append(state["count"]))
        # log == [0], ran immediately

        state["count"] = 1
        # log == [0, 1], re-ran because count changed
    """
    _effect = ReactiveEffect(fn, scheduler)
    if not lazy:
        _effect.run()
    return _effect


def track(target: object, key: Any) -> None:
    """Record a read of `key` on `target` (raw object or proxy) by the running effect.

    For layers that integrate with the dependency graph without going through
    a proxy.
    """
    _tracking.track(to_raw(target), key)


def trigger(target: object, key: Any, new_value: Any = None) -> None:
    """Notify the subscribers of `key` on `target` (raw object or proxy)."""
    _tracking.trigger(to_raw(target), key, new_value)
