# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from .interfaces import SidecarMetadataParser
from .models import MediaFile, MediaFileType, SidecarFields
from .naming import detect_clean_title_and_year, detect_imdb_id

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        logger.debug("Could not read %s: %s", path, e)
        return ""


class MetadataMerger:
    """
    Builds the draft fields of a new title from its sidecar files.

    NFO files are merged first in file order (first non-empty value wins), then
    binary sidecars with the same additive policy. Without any sidecar the title and
    year are derived from the directory or file name.
    """

    def __init__(
        self,
        nfo_parsers: Sequence[SidecarMetadataParser] = (),
        binary_parsers: Sequence[SidecarMetadataParser] = (),
        bad_words: Iterable[str] = (),
    ):
        self.nfo_parsers = list(nfo_parsers)
        self.binary_parsers = list(binary_parsers)
        self.bad_words = list(bad_words)

    @staticmethod
    def _parse_with(parsers: List[SidecarMetadataParser], path: Path) -> Optional[SidecarFields]:
        # try each dialect until one understands the file
        for parser in parsers:
            fields = parser.parse(path)
            if fields is not None:
                return fields
        return None

    @staticmethod
    def _absorb(draft: Optional[SidecarFields], fields: SidecarFields) -> SidecarFields:
        if draft is None:
            return fields.model_copy(deep=True)
        draft.fill_missing(fields)
        return draft

    def merge(self, candidate_files: Sequence[MediaFile], fallback_name: str) -> SidecarFields:
        draft: Optional[SidecarFields] = None

        nfos = [mf for mf in candidate_files if mf.type == MediaFileType.NFO]
        for nfo in nfos:
            fields = self._parse_with(self.nfo_parsers, nfo.path)
            if fields is None:
                logger.debug("| could not parse NFO %s", nfo.path)
                continue
            draft = self._absorb(draft, fields)

        if draft is None or not draft.has_identifier():
            imdb_id = self.scan_for_imdb_id(candidate_files)
            if imdb_id:
                if draft is None:
                    draft = SidecarFields()
                draft.imdb_id = imdb_id

        for sidecar in (mf for mf in candidate_files if mf.type == MediaFileType.BINARY_SIDECAR):
            fields = self._parse_with(self.binary_parsers, sidecar.path)
            if fields is None:
                logger.debug("| could not parse sidecar %s", sidecar.path)
                continue
            draft = self._absorb(draft, fields)

        if draft is None:
            draft = SidecarFields()
        if not draft.title:
            title, year = detect_clean_title_and_year(fallback_name, self.bad_words)
            draft.title = title
            if draft.year is None:
                draft.year = year
        return draft

    def scan_for_imdb_id(self, candidate_files: Sequence[MediaFile]) -> str:
        """
        Looks for an IMDb id in the raw NFO text first, then in TEXT files.
        """
        for file_type in (MediaFileType.NFO, MediaFileType.TEXT):
            for mf in candidate_files:
                if mf.type != file_type:
                    continue
                imdb_id = detect_imdb_id(read_text(mf.path))
                if imdb_id:
                    logger.debug("| found IMDb id %s in %s", imdb_id, mf.path)
                    return imdb_id
        return ""
