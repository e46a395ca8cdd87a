"""Data anchor — plain Python structures that hold the process-wide reactive state.

Both indexes are keyed by id() of the raw object.

`targets` holds dependency maps strongly, so a raw object that is still alive
keeps every subscription recorded against it. The anchor itself never keeps a
raw object alive: objects that support weak references get a finalizer that
drops their entry when they die, and objects that don't (dicts, lists) are
only held while some effect is subscribed to them.

`proxies` holds its values weakly: a proxy lives as long as its users hold it.
"""

import itertools
import weakref

# id(raw) -> KeyToDepMap (the raw object's property key -> Dep index)
targets: dict = {}

# id(raw) -> ReactiveProxy wrapping it
proxies: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

# Effect ids, ordered by creation
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def forget(key: int) -> None:
    """Drop the dependency map indexed under key, if any."""
    targets.pop(key, None)
