# Copyright (c) 2025 Trae AI. All rights reserved.

import os
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence
from src.core.assembler import AssemblyResult, TitleAssembler
from src.core.classifier import FileClassifier
from src.core.config import Config
from src.core.errors import SyncConfigurationError
from src.core.grouping import TitleGrouper
from src.core.interfaces import CatalogStore, NotificationSink, SidecarMetadataParser, TechnicalInspector
from src.core.metadata import MetadataMerger
from src.core.models import MediaFile, MediaFileType, NotificationLevel, SyncReport, Title
from src.core.reconciler import Reconciler
from src.core.scheduler import WorkerPool
from src.core.session import CancellationToken, ScanSession
from src.core.skip_rules import SkipRules
from src.core.walker import DirectoryWalker, LeafCandidate
from src.infrastructure.sidecar.nfo_parser import KodiNfoParser, MediaPortalNfoParser
from src.infrastructure.sidecar.vsmeta_parser import VsmetaParser

logger = logging.getLogger(__name__)

INSPECTED_TYPES = {MediaFileType.VIDEO, MediaFileType.TRAILER, MediaFileType.VIDEO_EXTRA}
# disc navigation files carry no streams worth probing
DISC_AUX_EXTENSIONS = {".ifo", ".bup", ".bdmv"}


class LibrarySyncService:
    """
    Synchronizes the catalog with the configured datasources.

    Per datasource: walk, group and assemble titles on the discovery pool, remove
    orphans, then inspect files without technical data on the inspection pool.
    """

    def __init__(
        self,
        config: Config,
        store: CatalogStore,
        notifier: NotificationSink,
        nfo_parsers: Optional[Sequence[SidecarMetadataParser]] = None,
        binary_parsers: Optional[Sequence[SidecarMetadataParser]] = None,
        inspector: Optional[TechnicalInspector] = None,
    ):
        self.config = config
        self.store = store
        self.notifier = notifier
        self.inspector = inspector

        if nfo_parsers is None:
            nfo_parsers = [KodiNfoParser(), MediaPortalNfoParser()]
        if binary_parsers is None:
            binary_parsers = [VsmetaParser()]

        self.skip_rules = SkipRules(config)
        self.classifier = FileClassifier(config)
        self.walker = DirectoryWalker(self.skip_rules, self.classifier)
        self.grouper = TitleGrouper(self.classifier)
        self.merger = MetadataMerger(nfo_parsers, binary_parsers, config.bad_words)
        self.assembler = TitleAssembler(
            self.classifier,
            self.skip_rules,
            self.merger,
            store,
            notifier,
            title_scan_depth=config.title_scan_depth,
        )
        self.reconciler = Reconciler(store)

    def run(
        self,
        datasources: Optional[Iterable[Path]] = None,
        token: Optional[CancellationToken] = None,
        update_progress: Optional[Callable[[int, str], None]] = None,
    ) -> SyncReport:
        """
        Runs one synchronization. Restrict it to some roots by passing datasources.
        update_progress: callable(percentage, message)
        """
        def report_progress(p, msg):
            if update_progress:
                update_progress(p, msg)

        targets = [Path(d) for d in (self.config.datasources if datasources is None else datasources)]
        if not targets:
            self.notifier.push(NotificationLevel.ERROR, "sync", "update.datasource.nonespecified")
            raise SyncConfigurationError("No datasource configured")

        session = ScanSession(token)
        report = SyncReport(datasources=targets)
        logger.info("Starting synchronization of %d datasource(s)", len(targets))

        for i, datasource in enumerate(targets):
            if session.cancelled:
                break
            report_progress(int(i / len(targets) * 100), f"Scanning {datasource}...")
            if not self.is_available(datasource):
                logger.warning("Datasource %s is not available", datasource)
                self.notifier.push(NotificationLevel.WARN, str(datasource), "update.datasource.unavailable", (str(datasource),))
                continue
            self.sync_datasource(datasource, session, report)

        report.pre_dir = session.counters.pre_dir
        report.post_dir = session.counters.post_dir
        report.visited_files = session.counters.visited_files
        report.cancelled = session.cancelled
        logger.info(
            "Synchronization %s: %d added, %d updated, %d removed, %d files detached "
            "(dirs pre/post %d/%d, files %d)",
            "cancelled" if report.cancelled else "complete",
            report.titles_added,
            report.titles_updated,
            report.titles_removed,
            report.files_detached,
            report.pre_dir,
            report.post_dir,
            report.visited_files,
        )
        report_progress(100, "Synchronization cancelled" if report.cancelled else "Synchronization complete")
        return report

    @staticmethod
    def is_available(datasource: Path) -> bool:
        if not datasource.is_dir():
            return False
        try:
            with os.scandir(datasource) as it:
                empty = next(it, None) is None
        except OSError as e:
            logger.warning("Could not list datasource %s: %s", datasource, e)
            return False
        # an empty mount point usually means the share is offline
        return not (empty and os.name != "nt")

    def process_candidate(self, candidate: LeafCandidate, session: ScanSession) -> List[AssemblyResult]:
        decision = self.grouper.resolve(candidate)
        logger.debug("| %s -> %s (root %s)", candidate.directory, decision.state.value, decision.root)
        return self.assembler.assemble(decision, session)

    def sync_datasource(self, datasource: Path, session: ScanSession, report: SyncReport):
        logger.info("Scanning datasource %s", datasource)
        tasks = []
        with WorkerPool(self.config.discovery_workers, "discovery", session.token, self.notifier) as pool:
            for candidate in self.walker.walk(datasource, session, self.config.max_depth):
                tasks.append(pool.submit(self.process_candidate, candidate, session))
            completed = pool.wait_for_completion_or_cancel()

        for task in tasks:
            if task.cancelled() or not task.done():
                continue
            for result in task.result() or []:
                if result.is_new:
                    report.titles_added += 1
                elif result.changed:
                    report.titles_updated += 1

        if not completed or session.cancelled:
            logger.info("Datasource %s: cancelled, skipping cleanup and inspection", datasource)
            return

        removed, detached = self.reconciler.cleanup(datasource, session)
        report.titles_removed += removed
        report.files_detached += detached

        if self.config.inspect_media and self.inspector is not None:
            report.inspected_files += self.inspect_datasource(datasource, session)

    @staticmethod
    def needs_inspection(media_file: MediaFile) -> bool:
        return (
            media_file.type in INSPECTED_TYPES
            and media_file.technical is None
            and not media_file.is_placeholder
            and media_file.extension.lower() not in DISC_AUX_EXTENSIONS
        )

    def _inspect_file(self, media_file: MediaFile):
        return media_file.path, self.inspector.inspect(media_file)

    def inspect_datasource(self, datasource: Path, session: ScanSession) -> int:
        """
        Gathers technical metadata for files lacking it. Returns the number of inspected files.
        """
        titles: List[Title] = [
            t for t in self.store.all_titles_for_datasource(datasource)
            if any(self.needs_inspection(mf) for mf in t.media_files)
        ]
        if not titles:
            return 0
        logger.info("Inspecting media files of %d title(s)", len(titles))

        tasks = {}
        with WorkerPool(self.config.inspection_workers, "inspection", session.token, self.notifier) as pool:
            for title in titles:
                for mf in title.media_files:
                    if self.needs_inspection(mf):
                        tasks[pool.submit(self._inspect_file, mf)] = title
            pool.wait_for_completion_or_cancel()

        inspected = 0
        changed = {}
        for task, title in tasks.items():
            if task.cancelled() or not task.done() or task.result() is None:
                continue
            path, technical = task.result()
            if technical is None:
                continue
            for mf in title.media_files:
                if mf.path == path:
                    mf.technical = technical
                    inspected += 1
                    changed[title.id] = title
        for title in changed.values():
            self.store.upsert(title)
        return inspected
