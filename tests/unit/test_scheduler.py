# Copyright (c) 2025 Trae AI. All rights reserved.

import threading
from unittest.mock import MagicMock
from src.core.models import NotificationLevel
from src.core.scheduler import WorkerPool
from src.core.session import CancellationToken


def test_results_are_returned():
    with WorkerPool(2, "test", CancellationToken()) as pool:
        tasks = [pool.submit(lambda x: x * 2, i) for i in range(5)]
        assert pool.wait_for_completion_or_cancel()

    assert [t.result() for t in tasks] == [0, 2, 4, 6, 8]


def test_crash_is_reported_and_siblings_run():
    notifier = MagicMock()

    def boom():
        raise RuntimeError("disk on fire")

    with WorkerPool(1, "test", CancellationToken(), notifier) as pool:
        crashed = pool.submit(boom)
        fine = pool.submit(lambda: "ok")
        assert pool.wait_for_completion_or_cancel()

    assert crashed.result() is None
    assert fine.result() == "ok"
    notifier.push.assert_called_once_with(NotificationLevel.ERROR, "test", "message.update.threadcrashed", ("disk on fire",))


def test_cancelled_token_skips_tasks():
    token = CancellationToken()
    token.cancel()
    fn = MagicMock()

    with WorkerPool(1, "test", token) as pool:
        pool.submit(fn)
        assert not pool.wait_for_completion_or_cancel()

    fn.assert_not_called()


def test_cancel_drops_queued_tasks():
    token = CancellationToken()
    started = threading.Event()
    release = threading.Event()
    queued = MagicMock()

    def blocking():
        started.set()
        release.wait(5)
        return "done"

    pool = WorkerPool(1, "test", token)
    running = pool.submit(blocking)
    pool.submit(queued)
    assert started.wait(5)

    token.cancel()
    assert not pool.wait_for_completion_or_cancel(poll_interval=0.01)
    release.set()
    pool.shutdown()

    assert running.result() == "done"
    queued.assert_not_called()
