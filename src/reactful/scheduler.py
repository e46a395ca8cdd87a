"""Batching scheduler — coalesces jobs into one flush per event-loop tick.

queue_job() appends a job and, if no flush is pending yet, asks the flush
scheduler to call flush_jobs() as soon as the current synchronous code has
finished. By default that is asyncio's loop.call_soon — the next turn of
the running event loop, never a timer or a thread.

flush_jobs() runs a snapshot of the queue with duplicates removed, in
insertion order. Jobs queued while a flush is running are not part of the
snapshot; they get a flush of their own on a later tick.

Without a running event loop (plain synchronous code, tests), jobs stay
queued until flush_jobs() is called or a flush scheduler is installed:

    reactful.set_flush_scheduler(app.call_later)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from reactful._tracking import active_effect

Job = Callable[[], object]
FlushScheduler = Callable[[Callable[[], None]], object]

logger = logging.getLogger("reactful.scheduler")

_queue: list[Job] = []
_flush_pending: bool = False
_flush_scheduler: FlushScheduler | None = None


def set_flush_scheduler(scheduler: FlushScheduler | None) -> None:
    """Set how a flush is deferred. scheduler(callback) must call callback later.

    None restores the default (the running asyncio loop's call_soon).
    """
    global _flush_scheduler
    _flush_scheduler = scheduler


def queue_job(job: Job) -> None:
    """Queue job for the next flush. Requests a flush if none is pending."""
    _queue.append(job)
    _queue_flush()


def _queue_flush() -> None:
    global _flush_pending
    if _flush_pending:
        return
    if _flush_scheduler is not None:
        _flush_pending = True
        _flush_scheduler(flush_jobs)
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # No loop: the caller drains with flush_jobs().
        logger.debug("no running event loop, %d job(s) wait for flush_jobs()", len(_queue))
        return
    _flush_pending = True
    loop.call_soon(flush_jobs)


def flush_jobs() -> None:
    """Run every queued job once. Errors are logged; the flush continues."""
    global _flush_pending
    _flush_pending = False
    if not _queue:
        return

    jobs = list(dict.fromkeys(_queue))
    _queue.clear()
    logger.debug("flushing %d job(s)", len(jobs))
    # Jobs run outside any effect, whatever context the flush was requested from.
    token = active_effect.set(None)
    try:
        for job in jobs:
            try:
                job()
            except Exception:
                logger.exception("error in scheduled job %r", job)
    finally:
        active_effect.reset(token)


async def next_tick() -> None:
    """Wait until the flush requested so far has run.

    Usage:
        count.value = 1
        await next_tick()
        # watch callbacks for the change have fired
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()
    loop.call_soon(future.set_result, None)
    await future


def get_pending_count() -> int:
    """Number of jobs waiting for a flush. Useful for testing."""
    return len(_queue)
