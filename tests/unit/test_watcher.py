# Copyright (c) 2025 Trae AI. All rights reserved.

import threading
from watchdog.events import FileCreatedEvent, FileDeletedEvent, FileMovedEvent
from src.server.watcher import DatasourceHandler, FileWatcher


def test_changes_are_debounced_into_one_callback(tmp_path):
    calls = []
    fired = threading.Event()

    def callback(datasource, changes):
        calls.append((datasource, changes))
        fired.set()

    handler = DatasourceHandler(tmp_path, callback, debounce_seconds=0.05)
    handler.on_created(FileCreatedEvent(str(tmp_path / "a.mkv")))
    handler.on_deleted(FileDeletedEvent(str(tmp_path / "b.mkv")))
    handler.on_moved(FileMovedEvent(str(tmp_path / "c.mkv"), str(tmp_path / "d.mkv")))

    assert fired.wait(5)
    assert len(calls) == 1
    datasource, changes = calls[0]
    assert datasource == tmp_path
    assert len(changes) == 3
    assert changes[0].startswith("Created: ")
    assert handler.changes == set()


def test_cancel_stops_pending_callback(tmp_path):
    calls = []
    handler = DatasourceHandler(tmp_path, lambda d, c: calls.append(c), debounce_seconds=10)
    handler.on_created(FileCreatedEvent(str(tmp_path / "a.mkv")))

    handler.cancel()

    assert handler.timer is None
    assert calls == []


def test_watcher_skips_missing_datasources(tmp_path):
    watcher = FileWatcher([tmp_path, tmp_path / "missing"], lambda d, c: None, debounce_seconds=1)
    watcher.start()
    try:
        assert set(watcher.handlers) == {tmp_path, tmp_path / "missing"}
        assert watcher.observer.is_alive()
    finally:
        watcher.stop()
