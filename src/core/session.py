# Copyright (c) 2025 Trae AI. All rights reserved.

import threading
from pathlib import Path
from typing import Iterable, Set


class CancellationToken:
    """
    Cooperative cancellation flag shared by the walker, the worker pools and the caller.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class ConcurrentPathSet:
    def __init__(self):
        self._paths: Set[Path] = set()
        self._lock = threading.Lock()

    def add(self, path: Path):
        with self._lock:
            self._paths.add(path)

    def add_all(self, paths: Iterable[Path]):
        paths = list(paths)
        with self._lock:
            self._paths.update(paths)

    def add_if_absent(self, path: Path) -> bool:
        with self._lock:
            if path in self._paths:
                return False
            self._paths.add(path)
            return True

    def __contains__(self, path) -> bool:
        with self._lock:
            return path in self._paths

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)


class ScanCounters:
    """
    Diagnostic counters of visited directories and files.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.pre_dir = 0
        self.post_dir = 0
        self.visited_files = 0

    def inc_pre_dir(self):
        with self._lock:
            self.pre_dir += 1

    def inc_post_dir(self):
        with self._lock:
            self.post_dir += 1

    def inc_visited_files(self, count: int = 1):
        with self._lock:
            self.visited_files += count


class ScanSession:
    """
    Per-invocation state handed to every task. Nothing here outlives one sync run.
    """

    def __init__(self, token: CancellationToken = None):
        self.token = token or CancellationToken()
        self.counters = ScanCounters()
        self.observed = ConcurrentPathSet()
        self._claimed_roots = ConcurrentPathSet()
        self._newly_added = ConcurrentPathSet()

    @property
    def cancelled(self) -> bool:
        return self.token.is_cancelled

    def observe(self, path: Path):
        self.observed.add(path)

    def observe_all(self, paths: Iterable[Path]):
        self.observed.add_all(paths)

    def was_observed(self, path: Path) -> bool:
        return path in self.observed

    def claim_root(self, root: Path) -> bool:
        """
        Returns True for the first task asking for this root in the current run.
        """
        return self._claimed_roots.add_if_absent(root)

    def mark_newly_added(self, title_id: str):
        self._newly_added.add(title_id)

    def is_newly_added(self, title_id: str) -> bool:
        return title_id in self._newly_added
