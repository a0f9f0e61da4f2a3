# Copyright (c) 2025 Trae AI. All rights reserved.

import threading
from typing import Dict, Any, Optional
import time
from src.core.session import CancellationToken


class TaskManager:
    """
    Manages background sync tasks, their progress and their cancellation tokens.
    """

    def __init__(self):
        self._tasks: Dict[str, Dict[str, Any]] = {}
        self._tokens: Dict[str, CancellationToken] = {}
        self._lock = threading.Lock()

    def is_running(self, task_id: str) -> bool:
        with self._lock:
            task = self._tasks.get(task_id)
            return bool(task) and task["status"] == "running"

    def start_task(self, task_id: str, total_steps: int = 100) -> Optional[CancellationToken]:
        """
        Registers a running task. Returns None if a task with this id is already running.
        """
        with self._lock:
            task = self._tasks.get(task_id)
            if task and task["status"] == "running":
                return None
            token = CancellationToken()
            self._tokens[task_id] = token
            self._tasks[task_id] = {
                "status": "running",
                "progress": 0,
                "total": total_steps,
                "message": "Starting...",
                "start_time": time.time(),
                "result": None,
            }
            return token

    def update_progress(self, task_id: str, progress: int, message: Optional[str] = None):
        with self._lock:
            if task_id in self._tasks:
                self._tasks[task_id]["progress"] = progress
                if message:
                    self._tasks[task_id]["message"] = message

    def complete_task(self, task_id: str, message: str = "Completed", result: Optional[Dict[str, Any]] = None):
        with self._lock:
            if task_id in self._tasks:
                self._tasks[task_id]["status"] = "completed"
                self._tasks[task_id]["progress"] = self._tasks[task_id]["total"]
                self._tasks[task_id]["message"] = message
                self._tasks[task_id]["result"] = result

    def fail_task(self, task_id: str, message: str):
        with self._lock:
            if task_id in self._tasks:
                self._tasks[task_id]["status"] = "failed"
                self._tasks[task_id]["message"] = message

    def cancel_task(self, task_id: str) -> bool:
        with self._lock:
            task = self._tasks.get(task_id)
            if not task or task["status"] != "running":
                return False
            self._tokens[task_id].cancel()
            task["message"] = "Cancelling..."
            return True

    def get_task_status(self, task_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            task = self._tasks.get(task_id)
            return dict(task) if task else None

    def get_all_tasks(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {k: dict(v) for k, v in self._tasks.items()}


# Global instance
task_manager = TaskManager()
