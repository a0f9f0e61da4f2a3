# Copyright (c) 2025 Trae AI. All rights reserved.

import os
import logging
from pathlib import Path
from typing import Iterator, NamedTuple, Optional, Set
from .classifier import FileClassifier
from .models import DISC_FOLDERS, MediaFile, MediaFileType
from .session import ScanSession
from .skip_rules import SkipRules
from .stacking import is_pure_folder_stacking_marker

logger = logging.getLogger(__name__)


class LeafCandidate(NamedTuple):
    directory: Path
    datasource: Path
    # route straight to multi-title grouping
    multi: bool = False


def contains_disc_segment(path: Path, datasource: Path) -> bool:
    try:
        relative = path.relative_to(datasource)
    except ValueError:
        relative = path
    return any(part.upper() in DISC_FOLDERS for part in relative.parts)


def resolve_title_root(directory: Path, datasource: Path, is_disc: bool = False) -> Path:
    """
    Folder a title found in directory belongs to: discs climb out of their
    BDMV/VIDEO_TS structure, CD1/CD2 folders belong to their parent.
    """
    if is_disc:
        root = directory
        while root != datasource and contains_disc_segment(root, datasource):
            root = root.parent
        return root
    if is_pure_folder_stacking_marker(directory.name) and directory.parent != datasource:
        return directory.parent
    return directory


class DirectoryWalker:
    """
    Walks a datasource and yields the directories holding at least one video file.

    Directories are emitted post-order, so a folder is only yielded after all of its
    subfolders were handled.
    """

    def __init__(self, skip_rules: SkipRules, classifier: FileClassifier):
        self.skip_rules = skip_rules
        self.classifier = classifier

    def walk(self, datasource: Path, session: ScanSession, max_depth: Optional[int] = None) -> Iterator[LeafCandidate]:
        datasource = Path(datasource)
        emitted_roots: Set[Path] = set()
        yield from self._visit(datasource, datasource, session, 0, max_depth, emitted_roots)

    def _scan(self, directory: Path):
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
        files, dirs = [], []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    dirs.append(Path(entry.path))
                elif entry.is_file():
                    files.append(Path(entry.path))
            except OSError as e:
                logger.debug("Could not inspect %s: %s", entry.path, e)
        return files, dirs

    def _visit(self, directory: Path, datasource: Path, session: ScanSession, depth: int,
               max_depth: Optional[int], emitted_roots: Set[Path]):
        """
        Yields candidates below and including directory; returns True when something was emitted.
        """
        if session.cancelled:
            return False
        if self.skip_rules.should_skip(directory, datasource):
            return False

        session.counters.inc_pre_dir()
        session.observe(directory)
        try:
            files, dirs = self._scan(directory)
        except OSError as e:
            logger.warning("Could not list %s: %s", directory, e)
            return False

        has_video = False
        has_disc_video = False
        for path in files:
            session.counters.inc_visited_files()
            session.observe(path)
            if self.classifier.classify(path) == MediaFileType.VIDEO:
                has_video = True
                if MediaFile(path=path, extension=path.suffix.lower()).is_disc_file:
                    has_disc_video = True

        emitted_below = False
        if max_depth is None or depth < max_depth:
            for sub in dirs:
                if session.cancelled:
                    break
                if (yield from self._visit(sub, datasource, session, depth + 1, max_depth, emitted_roots)):
                    emitted_below = True

        session.counters.inc_post_dir()
        if session.cancelled:
            logger.info("Traversal of %s cancelled", datasource)
            return emitted_below
        if not has_video:
            return emitted_below

        # a disc part or CD2 folder resolving to a folder that was already emitted
        # is assembled with it
        root = resolve_title_root(directory, datasource, has_disc_video)
        if root in emitted_roots:
            logger.debug("| %s belongs to the already emitted title at %s", directory, root)
            return True
        emitted_roots.add(root)

        if directory == datasource:
            logger.debug("| loose files in datasource root %s", directory)
            yield LeafCandidate(directory, datasource, multi=True)
            return True

        if emitted_below and not has_disc_video:
            logger.debug("| %s holds titles in subfolders, treating as multi-title directory", directory)
            yield LeafCandidate(directory, datasource, multi=True)
        else:
            yield LeafCandidate(directory, datasource, multi=False)
        return True
