"""reactful: fine-grained reactive state for Python."""

from importlib.metadata import version as _version

__version__ = _version("reactful")

from reactful.reactive import reactive, is_reactive, to_raw
from reactful.effect import ReactiveEffect, effect, track, trigger
from reactful.ref import Ref, ref, shallow_ref, is_ref, unref
from reactful.computed import ComputedRef, computed
from reactful.scheduler import (
    queue_job,
    flush_jobs,
    next_tick,
    set_flush_scheduler,
    get_pending_count,
)
from reactful.watch import watch, WatchHandle
# textual bridge NOT auto-imported: opt-in only

__all__ = [
    "reactive",
    "is_reactive",
    "to_raw",
    "ReactiveEffect",
    "effect",
    "track",
    "trigger",
    "Ref",
    "ref",
    "shallow_ref",
    "is_ref",
    "unref",
    "ComputedRef",
    "computed",
    "queue_job",
    "flush_jobs",
    "next_tick",
    "set_flush_scheduler",
    "get_pending_count",
    "watch",
    "WatchHandle",
]
