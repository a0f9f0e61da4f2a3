# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import threading
from concurrent import futures
from typing import Callable, List, Optional
from .interfaces import NotificationSink
from .models import NotificationLevel
from .session import CancellationToken

logger = logging.getLogger(__name__)


class WorkerPool:
    """
    Bounded thread pool with cooperative cancellation.

    The token is checked when a task starts; queued tasks are dropped once it is set,
    running ones are left to finish. Exceptions never leave a task.
    """

    def __init__(self, width: int, name: str, token: CancellationToken, notifier: Optional[NotificationSink] = None):
        self.name = name
        self.token = token
        self.notifier = notifier
        self._executor = futures.ThreadPoolExecutor(max_workers=max(1, width), thread_name_prefix=name)
        self._futures: List[futures.Future] = []
        self._lock = threading.Lock()

    def submit(self, fn: Callable, *args, **kwargs) -> futures.Future:
        future = self._executor.submit(self._run, fn, *args, **kwargs)
        with self._lock:
            self._futures.append(future)
        return future

    def _run(self, fn: Callable, *args, **kwargs):
        if self.token.is_cancelled:
            return None
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logger.exception("Task in %s pool crashed: %s", self.name, e)
            if self.notifier:
                self.notifier.push(NotificationLevel.ERROR, self.name, "message.update.threadcrashed", (str(e),))
            return None

    def wait_for_completion_or_cancel(self, poll_interval: float = 0.2) -> bool:
        """
        Blocks until all tasks finished or cancellation was requested.
        Returns False if cancelled.
        """
        while True:
            with self._lock:
                pending = [f for f in self._futures if not f.done()]
            if not pending:
                return not self.token.is_cancelled
            if self.token.is_cancelled:
                for f in pending:
                    f.cancel()
                logger.info("%s pool cancelled, dropped queued tasks", self.name)
                return False
            futures.wait(pending, timeout=poll_interval, return_when=futures.FIRST_COMPLETED)

    def shutdown(self):
        self._executor.shutdown(wait=True, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
