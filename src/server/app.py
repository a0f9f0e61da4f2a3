# Copyright (c) 2025 Trae AI. All rights reserved.

from flask import Flask, jsonify, request
from flask_apscheduler import APScheduler
import threading
from pathlib import Path
from typing import List, Optional
from ..core.config import Config
from ..core.errors import SyncConfigurationError
from ..infrastructure.db.database import Database
from ..infrastructure.db.repository import SqliteCatalogStore, LogRepository
from ..infrastructure.inspect.ffprobe import FfprobeInspector
from ..services.notification_service import NotificationService
from ..services.sync_service import LibrarySyncService
from .task_manager import task_manager
from .watcher import FileWatcher

SYNC_TASK_ID = "sync"


class Server:
    def __init__(self, config_path: str = "config.yaml"):
        # Configure logging
        import logging
        import sys
        self.config = Config.load(config_path)
        logging.basicConfig(
            level=logging.DEBUG if self.config.verbose else logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[logging.StreamHandler(sys.stdout)]
        )
        self.logger = logging.getLogger("src.server.app")

        self.app = Flask(__name__)
        self.scheduler = APScheduler()

        # Infrastructure
        self.db = Database(Path(self.config.database_path))
        self.store = SqliteCatalogStore(self.db)
        self.log_repo = LogRepository(self.db)

        # Services
        self.notifier = NotificationService(self.log_repo)
        inspector = FfprobeInspector(self.config.ffprobe_path) if self.config.inspect_media else None
        self.sync_service = LibrarySyncService(self.config, self.store, self.notifier, inspector=inspector)
        self._threads = {}

        self._setup_routes()
        self._setup_scheduler()

        self.watcher = None
        if self.config.watch_datasources:
            self.watcher = FileWatcher(
                self.config.datasources, self._on_datasource_changed, self.config.watch_debounce_seconds
            )
            self.watcher.start()

    def start_sync(self, datasources: Optional[List[Path]] = None, task_id: str = SYNC_TASK_ID) -> Optional[str]:
        """
        Starts a synchronization in a background thread. Returns None if one is already running.
        """
        token = task_manager.start_task(task_id)
        if token is None:
            return None

        def run_sync():
            try:
                report = self.sync_service.run(
                    datasources=datasources,
                    token=token,
                    update_progress=lambda p, m: task_manager.update_progress(task_id, p, m),
                )
                message = "Synchronization cancelled" if report.cancelled else "Synchronization complete"
                task_manager.complete_task(task_id, message, report.model_dump(mode="json"))
            except SyncConfigurationError as e:
                task_manager.fail_task(task_id, str(e))
            except Exception as e:
                self.logger.exception("Synchronization failed: %s", e)
                task_manager.fail_task(task_id, str(e))

        thread = threading.Thread(target=run_sync, daemon=True)
        self._threads[task_id] = thread
        thread.start()
        return task_id

    def wait_for_task(self, task_id: str = SYNC_TASK_ID, timeout: Optional[float] = None):
        thread = self._threads.get(task_id)
        if thread:
            thread.join(timeout)

    def _on_datasource_changed(self, datasource: Path, changes: List[str]):
        self.logger.info("Detected %d change(s) in %s", len(changes), datasource)
        if self.start_sync([datasource]) is None:
            self.logger.info("Synchronization already running, ignoring changes in %s", datasource)

    def _setup_routes(self):
        @self.app.route("/api/titles")
        def get_titles():
            datasource = request.args.get("datasource")
            return jsonify(self.store.get_all(datasource))

        @self.app.route("/api/titles/<title_id>")
        def get_title(title_id):
            title = self.store.find_by_id(title_id)
            if title is None:
                return jsonify({"error": "Title not found"}), 404
            return jsonify(title.model_dump(mode="json"))

        @self.app.route("/api/scan", methods=["POST"])
        def trigger_scan():
            data = request.get_json(silent=True) or {}
            datasource = data.get("datasource")
            datasources = [Path(datasource)] if datasource else None
            if not datasources and not self.config.datasources:
                return jsonify({"error": "No datasource configured"}), 400

            task_id = self.start_sync(datasources)
            if task_id is None:
                return jsonify({"error": "Scan already in progress"}), 400
            return jsonify({"task_id": task_id})

        @self.app.route("/api/scan/cancel", methods=["POST"])
        def cancel_scan():
            if not task_manager.cancel_task(SYNC_TASK_ID):
                return jsonify({"error": "No scan in progress"}), 400
            self.logger.info("[User Action] Synchronization cancel requested")
            return jsonify({"status": "cancelling"})

        @self.app.route("/api/status")
        def get_status():
            return jsonify(task_manager.get_all_tasks())

        @self.app.route("/api/logs")
        def get_logs():
            limit = request.args.get("limit", 100, type=int)
            return jsonify(self.log_repo.get_recent(limit))

    def _setup_scheduler(self):
        self.scheduler.init_app(self.app)
        if self.config.scan_interval_minutes > 0:
            self.scheduler.add_job(
                id="scheduled_sync",
                func=self.start_sync,
                trigger="interval",
                minutes=self.config.scan_interval_minutes,
            )
            self.logger.info("Scheduled synchronization every %d minute(s)", self.config.scan_interval_minutes)
        self.scheduler.start()

    def run(self):
        self.app.run(host=self.config.server_host, port=self.config.server_port)

    def shutdown(self):
        task_manager.cancel_task(SYNC_TASK_ID)
        if self.watcher:
            self.watcher.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)


if __name__ == "__main__":
    server = Server()
    server.run()
