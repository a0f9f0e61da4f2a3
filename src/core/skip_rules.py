# Copyright (c) 2025 Trae AI. All rights reserved.

import os
import re
import logging
from pathlib import Path
from .config import Config

logger = logging.getLogger(__name__)

# uppercase names of folders which never hold titles
SKIP_FOLDERS = {
    "CERTIFICATE",
    "BACKUP",
    "PLAYLIST",
    "CLPINF",
    "SSIF",
    "AUXDATA",
    "AUDIO_TS",
    "$RECYCLE.BIN",
    "RECYCLER",
    "SYSTEM VOLUME INFORMATION",
    "@EADIR",
    "#RECYCLE",
    "#SNAPSHOT",
    ".DS_STORE",
}

# .foo, ._foo, .@__thumb, ...
SKIP_REGEX = re.compile(r"^[.][\w@]+.*")
_YEAR = re.compile(r"(?:^|[\W_])(19|20)\d{2}(?:[\W_]|$)")


class SkipRules:
    """
    Decides whether a directory is excluded from traversal.
    """

    def __init__(self, config: Config):
        self.ignore_markers = list(config.ignore_markers)
        self.user_skip = {self._normalize(p) for p in config.skip_folders if p}

    @staticmethod
    def _normalize(path) -> str:
        return os.path.normcase(str(Path(path))).rstrip("/\\")

    def is_junk_name(self, name: str) -> bool:
        if name.upper() in SKIP_FOLDERS:
            return True
        if SKIP_REGEX.match(name):
            # ".hack Beyond the World (2018)" is a title, not a hidden folder
            return _YEAR.search(name) is None
        return False

    def has_ignore_marker(self, directory: Path) -> bool:
        return any((directory / marker).exists() for marker in self.ignore_markers)

    def should_skip(self, path: Path, datasource: Path = None) -> bool:
        if datasource is not None and path == datasource:
            return False
        try:
            if self.is_junk_name(path.name):
                logger.debug("Skipping junk folder %s", path)
                return True
            if self._normalize(path) in self.user_skip:
                logger.debug("Skipping folder %s (configured)", path)
                return True
            if self.has_ignore_marker(path):
                logger.debug("Skipping folder %s (ignore marker)", path)
                return True
        except OSError as e:
            logger.debug("Skipping unreadable folder %s: %s", path, e)
            return True
        return False
