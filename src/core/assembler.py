# Copyright (c) 2025 Trae AI. All rights reserved.

import os
import time
import logging
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence
from .classifier import FileClassifier
from .grouping import GroupingDecision, GroupingState
from .interfaces import CatalogStore, NotificationSink
from .metadata import MetadataMerger
from .models import ARTWORK_TYPES, MediaFile, MediaFileType, MediaSource, NotificationLevel, Title
from .naming import detect_imdb_id, is_3d, parse_media_source
from .session import ScanSession
from .skip_rules import SkipRules
from .stacking import clean_stacking_markers

logger = logging.getLogger(__name__)

# non-video kinds attached without further checks
ATTACHABLE_TYPES = {
    MediaFileType.TRAILER,
    MediaFileType.VIDEO_EXTRA,
    MediaFileType.SAMPLE,
    MediaFileType.AUDIO,
    MediaFileType.NFO,
    MediaFileType.BINARY_SIDECAR,
    MediaFileType.TEXT,
} | ARTWORK_TYPES

GROUP_SEPARATORS = ". -_[("


class AssemblyResult(NamedTuple):
    title: Title
    is_new: bool
    changed: bool


def belongs_to_group(media_file: MediaFile, key: str) -> bool:
    """
    True if the file name is the video basename (key) or continues it after a separator.
    """
    name = media_file.filename.lower()
    if media_file.clean_basename.lower() == key:
        return True
    return name.startswith(key) and len(name) > len(key) and name[len(key)] in GROUP_SEPARATORS


class TitleAssembler:
    """
    Builds or updates Title records from a grouping decision and commits them to the store.
    """

    def __init__(
        self,
        classifier: FileClassifier,
        skip_rules: SkipRules,
        merger: MetadataMerger,
        store: CatalogStore,
        notifier: NotificationSink,
        title_scan_depth: int = 2,
    ):
        self.classifier = classifier
        self.skip_rules = skip_rules
        self.merger = merger
        self.store = store
        self.notifier = notifier
        self.title_scan_depth = title_scan_depth

    def assemble(self, decision: GroupingDecision, session: ScanSession) -> List[AssemblyResult]:
        if decision.state == GroupingState.DISCARDED:
            return []
        if not session.claim_root(decision.root):
            logger.debug("| %s already handled in this run", decision.root)
            return []
        if decision.state == GroupingState.MULTI_TITLE:
            return self.assemble_multi(decision, session)
        result = self.assemble_single(decision, session)
        return [result] if result else []

    def collect_files(self, root: Path, datasource: Path, max_depth: Optional[int]) -> List[MediaFile]:
        """
        Collects the files below a title root, honoring skip rules.
        """
        collected = []
        for current, dirs, files in os.walk(root, onerror=lambda e: logger.debug("Could not list %s", e.filename)):
            current_path = Path(current)
            depth = len(current_path.relative_to(root).parts)
            kept = []
            for d in sorted(dirs):
                sub = current_path / d
                if max_depth is not None and depth >= max_depth:
                    continue
                if self.skip_rules.should_skip(sub, datasource):
                    continue
                kept.append(d)
            dirs[:] = kept
            for f in sorted(files):
                collected.append(self.classifier.create_media_file(current_path / f))
        return collected

    def assemble_single(self, decision: GroupingDecision, session: ScanSession) -> Optional[AssemblyResult]:
        root, datasource = decision.root, decision.datasource
        depth = None if decision.is_disc else self.title_scan_depth
        files = self.collect_files(root, datasource, depth)
        session.observe(root)
        session.observe_all(mf.path for mf in files)

        # a folder that used to hold several titles keeps one record per title;
        # reuse the one owning a video found here, never an unrelated one
        existing = self.store.find_all_by_path(root)
        videos = [mf for mf in files if mf.type == MediaFileType.VIDEO]
        title = next((t for t in existing if any(t.has_media_file(v.path) for v in videos)), None)
        if title is None:
            title = next((t for t in existing if not t.video_files), None)
        is_new = title is None
        snapshot = None
        if is_new:
            title = self._new_title(root, datasource, files, root.name)
        else:
            snapshot = title.model_dump()
        title.multi_title_dir = False

        if decision.is_disc:
            title.disc = True
        if is_3d(root.name):
            title.video_in_3d = True

        self.attach_media_files(title, files)
        self.apply_poster_fallback(title, files, [mf.clean_basename for mf in title.video_files])
        return self._commit(title, is_new, snapshot, session)

    def assemble_multi(self, decision: GroupingDecision, session: ScanSession) -> List[AssemblyResult]:
        directory, datasource = decision.root, decision.datasource
        session.observe(directory)
        session.observe_all(mf.path for mf in decision.files)

        existing = self.store.find_all_by_path(directory)
        pool = list(decision.files)
        videos = [mf for mf in pool if mf.type == MediaFileType.VIDEO]
        # longest first, so "Title 2" is grouped before "Title"
        videos.sort(key=lambda mf: len(mf.filename), reverse=True)

        results = []
        for video in videos:
            if not any(mf.path == video.path for mf in pool):
                continue
            key = video.clean_basename.lower()
            group = [mf for mf in pool if belongs_to_group(mf, key)]
            pool = [mf for mf in pool if mf not in group]
            group_videos = [mf for mf in group if mf.type == MediaFileType.VIDEO]
            logger.debug("| multi-title group %r: %d files", key, len(group))

            title = next((t for t in existing if any(t.has_media_file(v.path) for v in group_videos)), None)
            is_new = title is None
            snapshot = None
            if is_new:
                title = self._new_title(directory, datasource, group, video.filename)
            else:
                snapshot = title.model_dump()
            title.multi_title_dir = True
            if is_3d(video.filename):
                title.video_in_3d = True

            self.attach_media_files(title, group)
            self.apply_poster_fallback(title, group, [video.clean_basename])
            result = self._commit(title, is_new, snapshot, session)
            if result:
                results.append(result)
        return results

    def _new_title(self, root: Path, datasource: Path, files: Sequence[MediaFile], fallback_name: str) -> Title:
        fields = self.merger.merge(files, fallback_name)
        title = Title(path=root, datasource=datasource, date_added=time.time())
        title.apply_sidecar(fields)
        logger.debug("| new title %r (%s) at %s", title.title, title.year, root)
        return title

    def _commit(self, title: Title, is_new: bool, snapshot: Optional[dict], session: ScanSession) -> Optional[AssemblyResult]:
        if not title.video_files:
            logger.error("Title %r at %s has no video file, discarding", title.title, title.path)
            self.notifier.push(NotificationLevel.ERROR, str(title.path), "update.title.novideo", (title.title,))
            return None

        title.evaluate_offline()
        title.has_subtitles = bool(title.get_media_files(MediaFileType.SUBTITLE))

        changed = is_new or title.model_dump() != snapshot
        if is_new:
            title.newly_added = True
            session.mark_newly_added(title.id)
        if changed:
            self.store.upsert(title)
            logger.info("%s title %r at %s", "Added" if is_new else "Updated", title.title, title.path)
        return AssemblyResult(title, is_new, changed)

    def attach_media_files(self, title: Title, files: Sequence[MediaFile]) -> bool:
        """
        Attaches classified files following the per-kind policy. Returns True if anything changed.
        """
        changed = False
        for mf in files:
            if title.has_media_file(mf.path):
                continue

            if mf.is_disc_file or mf.in_disc_structure:
                if not title.disc:
                    title.disc = True
                    changed = True
                if title.media_source == MediaSource.UNKNOWN:
                    title.media_source = parse_media_source(self._relative(mf.path, title.datasource))

            if mf.type == MediaFileType.VIDEO:
                if title.media_source == MediaSource.UNKNOWN:
                    title.media_source = parse_media_source(self._relative(mf.path, title.datasource))
                if not title.imdb_id:
                    title.imdb_id = detect_imdb_id(str(mf.path))
                changed |= title.add_media_file(mf)
            elif mf.type == MediaFileType.SUBTITLE:
                if mf.is_packed:
                    logger.debug("| skipping packed subtitle %s", mf.path)
                    continue
                changed |= title.add_media_file(mf)
            elif mf.type in ATTACHABLE_TYPES:
                if not self._matches_extra_artwork_folder(mf):
                    logger.warning("| %s is inside an extra artwork folder but is %s, skipping", mf.path, mf.type.value)
                    continue
                changed |= title.add_media_file(mf)
        return changed

    @staticmethod
    def _relative(path: Path, datasource: Path) -> str:
        try:
            return str(path.relative_to(datasource))
        except ValueError:
            return str(path)

    @staticmethod
    def _matches_extra_artwork_folder(media_file: MediaFile) -> bool:
        folder = media_file.parent.name.lower()
        if folder == "extrafanart":
            return media_file.type == MediaFileType.EXTRAFANART
        if folder == "extrathumbs":
            return media_file.type == MediaFileType.EXTRATHUMB
        return True

    def apply_poster_fallback(self, title: Title, files: Sequence[MediaFile], video_basenames: Sequence[str]) -> bool:
        """
        Promotes unmatched graphics named like the video or the title to POSTER.
        """
        names = {name.lower() for name in video_basenames if name}
        if title.title:
            names.add(title.title.lower())
        changed = False
        for mf in files:
            if mf.type != MediaFileType.GRAPHIC or title.has_media_file(mf.path):
                continue
            basename = Path(clean_stacking_markers(mf.filename)).stem.lower()
            if basename in names:
                logger.debug("| using %s as poster", mf.path)
                changed |= title.add_media_file(mf.model_copy(update={"type": MediaFileType.POSTER}))
        return changed
