# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Optional
from .classifier import FileClassifier
from .models import MediaFile, MediaFileType
from .walker import LeafCandidate, resolve_title_root

logger = logging.getLogger(__name__)


class GroupingState(Enum):
    SINGLE_TITLE = "single_title"
    MULTI_TITLE = "multi_title"
    DISC_FRAGMENT = "disc_fragment"
    DISCARDED = "discarded"


class GroupingDecision(NamedTuple):
    state: GroupingState
    root: Optional[Path]
    datasource: Path
    files: List[MediaFile]
    is_disc: bool = False


def normalized_basename(media_file: MediaFile) -> str:
    return media_file.clean_basename.lower()


class TitleGrouper:
    """
    Decides whether a leaf directory is one title, several titles or part of a disc
    structure, and resolves the logical root of the title(s).
    """

    def __init__(self, classifier: FileClassifier):
        self.classifier = classifier

    def list_files(self, directory: Path) -> List[MediaFile]:
        try:
            paths = sorted(p for p in directory.iterdir() if p.is_file())
        except OSError as e:
            logger.warning("Could not list %s: %s", directory, e)
            return []
        return [self.classifier.create_media_file(p) for p in paths]

    def resolve(self, candidate: LeafCandidate) -> GroupingDecision:
        directory, datasource = candidate.directory, candidate.datasource
        files = self.list_files(directory)
        videos = [mf for mf in files if mf.type == MediaFileType.VIDEO]
        if not videos:
            logger.debug("| no video files in %s anymore", directory)
            return GroupingDecision(GroupingState.DISCARDED, None, datasource, files)

        if any(mf.is_disc_file for mf in videos):
            root = resolve_title_root(directory, datasource, is_disc=True)
            logger.debug("| disc structure %s resolved to %s", directory, root)
            return GroupingDecision(GroupingState.DISC_FRAGMENT, root, datasource, files, is_disc=True)

        basenames = {normalized_basename(mf) for mf in videos}
        if len(basenames) > 1 or directory == datasource or candidate.multi:
            logger.debug("| %s is a multi-title directory (%d distinct videos)", directory, len(basenames))
            return GroupingDecision(GroupingState.MULTI_TITLE, directory, datasource, files)

        root = resolve_title_root(directory, datasource)
        return GroupingDecision(GroupingState.SINGLE_TITLE, root, datasource, files)
