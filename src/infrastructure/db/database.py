# Copyright (c) 2025 Trae AI. All rights reserved.

import sqlite3
import threading
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        # sqlite connections are shared between worker threads, writes are serialized here
        self.lock = threading.RLock()
        self._init_db()

    def _init_db(self):
        # Allow using :memory: for testing, which is not a path
        if str(self.db_path) != ":memory:" and not Path(self.db_path).parent.exists():
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        with self.lock, self.get_connection() as conn:
            # 1. titles table, one row per title, the aggregate is stored as JSON
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS titles (
                    id TEXT PRIMARY KEY,
                    path TEXT NOT NULL,
                    datasource TEXT NOT NULL,
                    title TEXT,
                    year INTEGER,
                    data TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_titles_path ON titles(path)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_titles_datasource ON titles(datasource)")

            # 2. operation_logs table
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS operation_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    action_type TEXT,
                    target TEXT,
                    details TEXT
                )
                """
            )
            conn.commit()
        logger.debug("Database ready at %s", self.db_path)

    def get_connection(self):
        # For :memory: every new connection is a fresh empty DB, so reuse one
        if str(self.db_path) == ":memory:":
            if not hasattr(self, "_memory_conn"):
                self._memory_conn = sqlite3.connect(":memory:", check_same_thread=False)
                self._memory_conn.row_factory = sqlite3.Row
            return self._memory_conn

        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=30)
        conn.row_factory = sqlite3.Row
        return conn
