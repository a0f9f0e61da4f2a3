# Copyright (c) 2025 Trae AI. All rights reserved.

import pytest
from pathlib import Path
from typing import Dict, List
from unittest.mock import MagicMock
from src.core.config import Config
from src.core.models import Title
from src.infrastructure.db.database import Database
from src.infrastructure.db.repository import SqliteCatalogStore, LogRepository


class MemoryCatalogStore:
    """
    CatalogStore keeping copies of the titles, like a real persistence layer would.
    """

    def __init__(self):
        self.titles: Dict[str, Title] = {}
        self.upserts: List[str] = []
        self.removals: List[str] = []

    def find_by_path(self, path):
        matches = self.find_all_by_path(path)
        return matches[0] if matches else None

    def find_all_by_path(self, path):
        return [t.model_copy(deep=True) for t in self.titles.values() if t.path == Path(path)]

    def upsert(self, title):
        self.upserts.append(title.id)
        # round trip through the dump, as fields excluded from it are never persisted
        self.titles[title.id] = Title.model_validate(title.model_dump())

    def remove_all(self, titles):
        for title in titles:
            self.removals.append(title.id)
            self.titles.pop(title.id, None)

    def all_titles_for_datasource(self, path):
        return [t.model_copy(deep=True) for t in self.titles.values() if t.datasource == Path(path)]

    def by_title(self, name):
        return [t for t in self.titles.values() if t.title == name]


def make_tree(root: Path, files):
    """
    Creates files below root. files is a list of relative paths or (path, content) tuples.
    """
    for entry in files:
        rel, content = entry if isinstance(entry, tuple) else (entry, "x")
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def datasource(tmp_path):
    path = tmp_path / "movies"
    path.mkdir()
    return path


@pytest.fixture
def config(datasource, tmp_path):
    return Config(
        datasources=[datasource],
        database_path=tmp_path / "test.db",
        inspect_media=False,
    )


@pytest.fixture
def memory_store():
    return MemoryCatalogStore()


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def database(db_path):
    return Database(db_path)


@pytest.fixture
def catalog_store(database):
    return SqliteCatalogStore(database)


@pytest.fixture
def log_repo(database):
    return LogRepository(database)
