import pytest

import reactful.scheduler as _sched_mod


@pytest.fixture(autouse=True)
def _clean_scheduler():
    """Each test starts with an empty job queue and the default flush scheduler."""
    _sched_mod.set_flush_scheduler(None)
    _sched_mod._queue.clear()
    _sched_mod._flush_pending = False
    yield
    _sched_mod.set_flush_scheduler(None)
    _sched_mod._queue.clear()
    _sched_mod._flush_pending = False
