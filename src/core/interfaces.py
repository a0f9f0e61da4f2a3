# Copyright (c) 2025 Trae AI. All rights reserved.

from pathlib import Path
from typing import List, Optional, Protocol, Sequence
from .models import MediaFile, NotificationLevel, SidecarFields, TechnicalMetadata, Title


class SidecarMetadataParser(Protocol):
    """
    Reads one sidecar format. Never raises; returns None for unparsable input.
    """

    def parse(self, path: Path) -> Optional[SidecarFields]:
        ...


class TechnicalInspector(Protocol):
    def inspect(self, media_file: MediaFile) -> Optional[TechnicalMetadata]:
        ...


class CatalogStore(Protocol):
    """
    Persistence for titles. Upserts of different titles may run concurrently.
    """

    def find_by_path(self, path: Path) -> Optional[Title]:
        ...

    def find_all_by_path(self, path: Path) -> List[Title]:
        ...

    def upsert(self, title: Title) -> None:
        ...

    def remove_all(self, titles: Sequence[Title]) -> None:
        ...

    def all_titles_for_datasource(self, path: Path) -> List[Title]:
        ...


class NotificationSink(Protocol):
    def push(self, level: NotificationLevel, subject: str, message_key: str, args: Sequence[str] = ()) -> None:
        ...
