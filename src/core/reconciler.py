# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
from pathlib import Path
from typing import List, Tuple
from .interfaces import CatalogStore
from .models import MediaFileType, Title
from .session import ScanSession

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Removes titles and files of a datasource that disappeared from disk.
    """

    def __init__(self, store: CatalogStore):
        self.store = store

    @staticmethod
    def _is_gone(path: Path, session: ScanSession) -> bool:
        if session.was_observed(path):
            return False
        if path.exists():
            logger.warning("%s was not seen during the scan but still exists, keeping it", path)
            return False
        return True

    def cleanup(self, datasource: Path, session: ScanSession) -> Tuple[int, int]:
        """
        Returns (titles removed, files detached).
        """
        to_remove: List[Title] = []
        detached = 0

        for title in self.store.all_titles_for_datasource(datasource):
            if session.is_newly_added(title.id) or title.newly_added:
                continue

            if self._is_gone(title.path, session):
                logger.info("Removing orphaned title %r (%s)", title.title, title.path)
                to_remove.append(title)
                continue

            gone = [mf for mf in title.media_files if self._is_gone(mf.path, session)]
            if not gone:
                continue
            for mf in gone:
                logger.debug("| detaching %s from %r", mf.path, title.title)
                title.remove_media_file(mf)
            detached += len(gone)

            if not title.video_files:
                logger.info("Removing title %r without video files (%s)", title.title, title.path)
                to_remove.append(title)
            else:
                title.evaluate_offline()
                title.has_subtitles = bool(title.get_media_files(MediaFileType.SUBTITLE))
                self.store.upsert(title)

        if to_remove:
            self.store.remove_all(to_remove)
        return len(to_remove), detached
