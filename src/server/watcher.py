# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import threading
from pathlib import Path
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


class DatasourceHandler(FileSystemEventHandler):
    """
    Collects changes below one datasource and fires the callback once they settle.
    """

    def __init__(self, datasource: Path, callback: Callable[[Path, List[str]], None], debounce_seconds: int = 30):
        self.datasource = datasource
        self.callback = callback
        self.debounce_seconds = debounce_seconds
        self.timer = None
        self._lock = threading.Lock()
        self.changes = set()

    def on_created(self, event):
        self._trigger(f"Created: {event.src_path}")

    def on_deleted(self, event):
        self._trigger(f"Deleted: {event.src_path}")

    def on_moved(self, event):
        self._trigger(f"Moved: {event.src_path} -> {event.dest_path}")

    def _trigger(self, change_desc: str):
        with self._lock:
            self.changes.add(change_desc)
            if self.timer:
                self.timer.cancel()
            self.timer = threading.Timer(self.debounce_seconds, self._execute_callback)
            self.timer.daemon = True
            self.timer.start()

    def _execute_callback(self):
        with self._lock:
            changes_snapshot = sorted(self.changes)
            self.changes.clear()
            self.timer = None

        self.callback(self.datasource, changes_snapshot)

    def cancel(self):
        with self._lock:
            if self.timer:
                self.timer.cancel()
                self.timer = None


class FileWatcher:
    """
    Watches the datasources and triggers a synchronization of the one that changed.
    """

    def __init__(self, datasources: List[Path], callback: Callable[[Path, List[str]], None], debounce_seconds: int = 30):
        self.datasources = [Path(d) for d in datasources]
        self.callback = callback
        self.debounce_seconds = debounce_seconds
        self.observer = Observer()
        self.handlers: Dict[Path, DatasourceHandler] = {
            d: DatasourceHandler(d, callback, debounce_seconds) for d in self.datasources
        }

    def start(self):
        for datasource, handler in self.handlers.items():
            if not datasource.is_dir():
                logger.warning("Not watching %s, directory not found", datasource)
                continue
            logger.info("Starting FileWatcher on %s...", datasource)
            self.observer.schedule(handler, str(datasource), recursive=True)
        self.observer.start()

    def stop(self):
        for handler in self.handlers.values():
            handler.cancel()
        self.observer.stop()
        self.observer.join()
