"""Textual integration for reactful. Opt-in — requires textual.

Effects run synchronously inside the write that triggered them, and watch
callbacks run on the flush after it. Either may land while the app is not
running, while widgets are being replaced, or on a worker thread. The
wrappers here guard against all three in one place so callsites don't.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from reactful.effect import effect as _effect
from reactful.watch import watch as _watch

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded effects and watchers during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn):
    """Wrap fn: skip when unsafe, marshal to the app thread, swallow NoMatches."""
    _main = threading.get_ident()

    def _safe(*args):
        try:
            fn(*args)
        except NoMatches:
            pass

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def watch(app, source, callback, *, immediate=False, deep=False):
    """watch() whose callback safely bridges to Textual widgets.

    The source is still read (and tracked) while paused; only the callback
    is skipped. A change made while paused is not replayed afterwards: the
    skipped value still becomes the old value, so the next callback reports
    (new, value_seen_while_paused).

    Usage:
        count.value = 2
        with pause(app):
            await next_tick()  # callback skipped
        count.value = 3
        await next_tick()  # callback(3, 2)
    """
    return _watch(source, _guard(app, callback), immediate=immediate, deep=deep)


def effect(app, fn):
    """effect() that safely bridges to Textual widgets.

    While paused the body does not run, so it keeps the dependencies of its
    last completed run. Created while unsafe, it never runs and never tracks.
    """
    runner = _effect(fn, lazy=True, scheduler=lambda: guarded())
    guarded = _guard(app, runner.run)
    guarded()
    return runner
