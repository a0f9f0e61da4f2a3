# Copyright (c) 2025 Trae AI. All rights reserved.

from typing import List, Optional, Dict, Sequence
from pathlib import Path
from src.core.models import Title
from .database import Database


class SqliteCatalogStore:
    """
    CatalogStore backed by the titles table.
    """

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _to_title(row) -> Title:
        return Title.model_validate_json(row["data"])

    def find_by_path(self, path: Path) -> Optional[Title]:
        with self.db.lock, self.db.get_connection() as conn:
            cursor = conn.execute(
                "SELECT data FROM titles WHERE path = ? ORDER BY rowid LIMIT 1",
                (str(path),),
            )
            row = cursor.fetchone()
            return self._to_title(row) if row else None

    def find_all_by_path(self, path: Path) -> List[Title]:
        with self.db.lock, self.db.get_connection() as conn:
            cursor = conn.execute("SELECT data FROM titles WHERE path = ? ORDER BY rowid", (str(path),))
            return [self._to_title(row) for row in cursor.fetchall()]

    def find_by_id(self, title_id: str) -> Optional[Title]:
        with self.db.lock, self.db.get_connection() as conn:
            row = conn.execute("SELECT data FROM titles WHERE id = ?", (title_id,)).fetchone()
            return self._to_title(row) if row else None

    def upsert(self, title: Title):
        """
        Saves or updates a title.
        """
        with self.db.lock, self.db.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO titles (id, path, datasource, title, year, data, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(id) DO UPDATE SET
                    path = excluded.path,
                    datasource = excluded.datasource,
                    title = excluded.title,
                    year = excluded.year,
                    data = excluded.data,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    title.id,
                    str(title.path),
                    str(title.datasource),
                    title.title,
                    title.year,
                    title.model_dump_json(),
                ),
            )
            conn.commit()

    def remove_all(self, titles: Sequence[Title]):
        with self.db.lock, self.db.get_connection() as conn:
            conn.executemany("DELETE FROM titles WHERE id = ?", [(t.id,) for t in titles])
            conn.commit()

    def all_titles_for_datasource(self, path: Path) -> List[Title]:
        with self.db.lock, self.db.get_connection() as conn:
            cursor = conn.execute("SELECT data FROM titles WHERE datasource = ? ORDER BY rowid", (str(path),))
            return [self._to_title(row) for row in cursor.fetchall()]

    def get_all(self, datasource: str = None) -> List[Dict]:
        query = "SELECT id, path, datasource, title, year, updated_at FROM titles"
        params = []
        if datasource:
            query += " WHERE datasource = ?"
            params.append(datasource)
        query += " ORDER BY title COLLATE NOCASE"

        with self.db.lock, self.db.get_connection() as conn:
            cursor = conn.execute(query, tuple(params))
            return [dict(row) for row in cursor.fetchall()]


class LogRepository:
    def __init__(self, db: Database):
        self.db = db

    def add(self, action_type: str, target: str, details: str = None):
        with self.db.lock, self.db.get_connection() as conn:
            conn.execute(
                "INSERT INTO operation_logs (action_type, target, details) VALUES (?, ?, ?)",
                (action_type, target, details)
            )
            conn.commit()

    def get_recent(self, limit: int = 100) -> List[Dict]:
        with self.db.lock, self.db.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM operation_logs ORDER BY id DESC LIMIT ?",
                (limit,)
            )
            return [dict(row) for row in cursor.fetchall()]
