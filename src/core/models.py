# Copyright (c) 2025 Trae AI. All rights reserved.

import re
import uuid
from enum import Enum
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field

from .stacking import clean_stacking_markers

DISC_FOLDERS = ("BDMV", "VIDEO_TS", "HVDVD_TS")
PACKED_EXTENSIONS = {"zip", "rar", "7z"}


class MediaFileType(Enum):
    VIDEO = "video"
    VIDEO_EXTRA = "video_extra"
    SAMPLE = "sample"
    TRAILER = "trailer"
    SUBTITLE = "subtitle"
    AUDIO = "audio"
    NFO = "nfo"
    BINARY_SIDECAR = "binary_sidecar"
    TEXT = "text"
    POSTER = "poster"
    FANART = "fanart"
    BANNER = "banner"
    THUMB = "thumb"
    CLEARART = "clearart"
    LOGO = "logo"
    CLEARLOGO = "clearlogo"
    DISCART = "discart"
    EXTRAFANART = "extrafanart"
    EXTRATHUMB = "extrathumb"
    GRAPHIC = "graphic"
    DOUBLE_EXT = "double_ext"
    UNKNOWN = "unknown"


ARTWORK_TYPES = {
    MediaFileType.POSTER,
    MediaFileType.FANART,
    MediaFileType.BANNER,
    MediaFileType.THUMB,
    MediaFileType.CLEARART,
    MediaFileType.LOGO,
    MediaFileType.CLEARLOGO,
    MediaFileType.DISCART,
    MediaFileType.EXTRAFANART,
    MediaFileType.EXTRATHUMB,
}


class MediaSource(Enum):
    BLURAY = "Blu-ray"
    HDDVD = "HD-DVD"
    DVD = "DVD"
    TV = "TV"
    VHS = "VHS"
    WEB = "Web"
    UNKNOWN = "Unknown"


class NotificationLevel(Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class TechnicalMetadata(BaseModel):
    """
    Stream information gathered by a technical inspector.
    """

    container_format: str = ""
    duration: float = 0.0
    video_codec: str = ""
    width: int = 0
    height: int = 0
    audio_codecs: List[str] = Field(default_factory=list)
    subtitle_languages: List[str] = Field(default_factory=list)


class MediaFile(BaseModel):
    """
    Represents a single file on disk relevant to a title.
    """

    path: Path
    type: MediaFileType = MediaFileType.UNKNOWN
    extension: str = ""
    size: int = 0
    mtime: float = 0.0
    technical: Optional[TechnicalMetadata] = None

    @property
    def parent(self) -> Path:
        return self.path.parent

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def clean_basename(self) -> str:
        """
        Basename without stacking markers (movie-cd1.avi -> movie).
        """
        return Path(clean_stacking_markers(self.filename)).stem

    @property
    def is_disc_file(self) -> bool:
        name = self.filename.lower()
        if re.fullmatch(r"(video_ts|vts_\d\d_\d)\.(vob|bup|ifo)", name):
            return True
        if re.fullmatch(r"(index\.bdmv|movieobject\.bdmv|\d{5}\.m2ts)", name):
            return True
        segments = {part.upper() for part in self.path.parent.parts}
        if "HVDVD_TS" in segments and name.endswith(".evo"):
            return True
        return False

    @property
    def in_disc_structure(self) -> bool:
        return any(part.upper() in DISC_FOLDERS for part in self.path.parent.parts)

    @property
    def is_packed(self) -> bool:
        ext = self.extension.lstrip(".").lower()
        return ext in PACKED_EXTENSIONS or re.fullmatch(r"r\d+", ext) is not None

    @property
    def is_placeholder(self) -> bool:
        return self.extension.lower() == ".disc"


class SidecarFields(BaseModel):
    """
    Title fields as read from one sidecar file, or merged from several.
    """

    title: str = ""
    original_title: str = ""
    sort_title: str = ""
    year: Optional[int] = None
    plot: str = ""
    tagline: str = ""
    imdb_id: str = ""
    tmdb_id: Optional[int] = None
    collection: str = ""
    rating: Optional[float] = None
    runtime: Optional[int] = None
    genres: List[str] = Field(default_factory=list)

    def is_empty_field(self, name: str) -> bool:
        value = getattr(self, name)
        return value is None or value == "" or value == []

    def has_identifier(self) -> bool:
        return bool(self.imdb_id) or bool(self.tmdb_id)

    def fill_missing(self, other: "SidecarFields") -> None:
        """
        Copies values from other only where this draft is still empty.
        """
        for name in type(self).model_fields:
            if self.is_empty_field(name) and not other.is_empty_field(name):
                setattr(self, name, getattr(other, name))


class Title(BaseModel):
    """
    A movie aggregate: the durable unit the engine produces and updates.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = ""
    original_title: str = ""
    sort_title: str = ""
    year: Optional[int] = None
    plot: str = ""
    tagline: str = ""
    imdb_id: str = ""
    tmdb_id: Optional[int] = None
    rating: Optional[float] = None
    runtime: Optional[int] = None
    genres: List[str] = Field(default_factory=list)
    collection: Optional[str] = None
    path: Path
    datasource: Path
    multi_title_dir: bool = False
    disc: bool = False
    offline: bool = False
    video_in_3d: bool = False
    has_subtitles: bool = False
    media_source: MediaSource = MediaSource.UNKNOWN
    date_added: float = 0.0
    newly_added: bool = Field(default=False, exclude=True)
    media_files: List[MediaFile] = Field(default_factory=list)

    def get_media_files(self, *types: MediaFileType) -> List[MediaFile]:
        if not types:
            return list(self.media_files)
        return [mf for mf in self.media_files if mf.type in types]

    @property
    def video_files(self) -> List[MediaFile]:
        return self.get_media_files(MediaFileType.VIDEO)

    def has_media_file(self, path: Path) -> bool:
        return any(mf.path == path for mf in self.media_files)

    def add_media_file(self, media_file: MediaFile) -> bool:
        if self.has_media_file(media_file.path):
            return False
        self.media_files.append(media_file)
        return True

    def remove_media_file(self, media_file: MediaFile) -> None:
        self.media_files = [mf for mf in self.media_files if mf.path != media_file.path]

    def apply_sidecar(self, fields: SidecarFields) -> None:
        self.title = fields.title
        self.original_title = fields.original_title
        self.sort_title = fields.sort_title
        self.year = fields.year
        self.plot = fields.plot
        self.tagline = fields.tagline
        self.imdb_id = fields.imdb_id
        self.tmdb_id = fields.tmdb_id
        self.rating = fields.rating
        self.runtime = fields.runtime
        self.genres = list(fields.genres)
        self.collection = fields.collection or None

    def evaluate_offline(self) -> None:
        self.offline = any(mf.is_placeholder for mf in self.video_files)


class SyncReport(BaseModel):
    datasources: List[Path] = Field(default_factory=list)
    titles_added: int = 0
    titles_updated: int = 0
    titles_removed: int = 0
    files_detached: int = 0
    inspected_files: int = 0
    pre_dir: int = 0
    post_dir: int = 0
    visited_files: int = 0
    cancelled: bool = False
