# Copyright (c) 2025 Trae AI. All rights reserved.

import re
import logging
from pathlib import Path
from .config import Config
from .models import MediaFile, MediaFileType

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tbn", ".gif", ".webp"}
PLEX_EXTRA_FOLDERS = {
    "behind the scenes",
    "behindthescenes",
    "deleted scenes",
    "deletedscenes",
    "featurettes",
    "interviews",
    "scenes",
    "shorts",
}


class FileClassifier:
    """
    Maps a path to a MediaFileType using name, extension and parent folder heuristics.
    """

    def __init__(self, config: Config):
        self.video_extensions = {ext.lower() for ext in config.video_extensions}
        self.subtitle_extensions = {ext.lower() for ext in config.subtitle_extensions}
        self.audio_extensions = {ext.lower() for ext in config.audio_extensions}
        self.text_extensions = {ext.lower() for ext in config.text_extensions}

        # Artwork names, checked in this order
        self.artwork_patterns = [
            (MediaFileType.GRAPHIC, re.compile(
                r"movieset-(poster|fanart|banner|disc|discart|logo|clearlogo|clearart|thumb)\..{2,4}", re.IGNORECASE)),
            (MediaFileType.POSTER, re.compile(r"(.*-poster|poster|folder|movie|.*-cover|cover)\..{2,4}", re.IGNORECASE)),
            (MediaFileType.FANART, re.compile(r"(.*-fanart|.*\.fanart|fanart)[0-9]{0,2}\..{2,4}", re.IGNORECASE)),
            (MediaFileType.BANNER, re.compile(r"(.*-banner|banner)\..{2,4}", re.IGNORECASE)),
            (MediaFileType.THUMB, re.compile(r"(.*-thumb|thumb)[0-9]{0,2}\..{2,4}", re.IGNORECASE)),
            (MediaFileType.CLEARART, re.compile(r"(.*-clearart|clearart)\..{2,4}", re.IGNORECASE)),
            (MediaFileType.LOGO, re.compile(r"(.*-logo|logo)\..{2,4}", re.IGNORECASE)),
            (MediaFileType.CLEARLOGO, re.compile(r"(.*-clearlogo|clearlogo)\..{2,4}", re.IGNORECASE)),
            # disc.avi is a video, so only image extensions here
            (MediaFileType.DISCART, re.compile(r"(.*-discart|discart|.*-disc|disc)\.(jpg|jpeg|png|tbn)", re.IGNORECASE)),
        ]
        self.extra_patterns = [
            re.compile(r".*[_.-]+extras?$", re.IGNORECASE),
            re.compile(r".*-+extras?-.*", re.IGNORECASE),
            re.compile(r".*-(behindthescenes|deleted|featurette|interview|scene|short)$", re.IGNORECASE),
        ]
        self.trailer_pattern = re.compile(r".*[_.-]*trailer?$", re.IGNORECASE)
        self.sample_pattern = re.compile(r".*[_.-]*sample$", re.IGNORECASE)

    def _classify_image(self, path: Path) -> MediaFileType:
        name = path.name
        folder = path.parent.name.lower()
        for file_type, pattern in self.artwork_patterns:
            if pattern.fullmatch(name):
                if file_type == MediaFileType.FANART and folder == "extrafanart":
                    return MediaFileType.EXTRAFANART
                if file_type == MediaFileType.THUMB and folder == "extrathumbs":
                    return MediaFileType.EXTRATHUMB
                return file_type
        if folder == "extrafanart":
            return MediaFileType.EXTRAFANART
        if folder == "extrathumbs":
            return MediaFileType.EXTRATHUMB
        return MediaFileType.GRAPHIC

    def _classify_video(self, path: Path) -> MediaFileType:
        basename = path.stem
        folder = path.parent.name.lower()
        if ".EXTRAS." in path.name or folder in ("extras", "extra") or folder in PLEX_EXTRA_FOLDERS:
            return MediaFileType.VIDEO_EXTRA
        if any(p.fullmatch(basename) for p in self.extra_patterns):
            return MediaFileType.VIDEO_EXTRA
        if self.trailer_pattern.fullmatch(basename) or folder in ("trailer", "trailers"):
            return MediaFileType.TRAILER
        if self.sample_pattern.fullmatch(basename) or folder == "sample":
            return MediaFileType.SAMPLE
        return MediaFileType.VIDEO

    def classify(self, path: Path) -> MediaFileType:
        path = Path(path)
        ext = path.suffix.lower()

        if ext in IMAGE_EXTENSIONS:
            return self._classify_image(path)

        if MediaFile(path=path, extension=ext).is_disc_file:
            return MediaFileType.VIDEO

        if ext == ".nfo":
            return MediaFileType.NFO
        if ext == ".vsmeta":
            return MediaFileType.BINARY_SIDECAR
        if ext in self.audio_extensions:
            return MediaFileType.AUDIO
        if ext in self.subtitle_extensions:
            return MediaFileType.SUBTITLE
        if ext in self.video_extensions:
            return self._classify_video(path)
        if ext in self.text_extensions:
            return MediaFileType.TEXT

        inner = Path(path.stem).suffix.lower()
        if inner in self.subtitle_extensions and MediaFile(path=path, extension=ext).is_packed:
            # movie.eng.srt.rar, rejected at attachment time
            return MediaFileType.SUBTITLE
        if inner in self.video_extensions:
            return MediaFileType.DOUBLE_EXT
        return MediaFileType.UNKNOWN

    def create_media_file(self, path: Path) -> MediaFile:
        path = Path(path)
        size, mtime = 0, 0.0
        try:
            stat = path.stat()
            size, mtime = stat.st_size, stat.st_mtime
        except OSError as e:
            logger.debug("Could not stat %s: %s", path, e)
        return MediaFile(
            path=path,
            type=self.classify(path),
            extension=path.suffix.lower(),
            size=size,
            mtime=mtime,
        )
