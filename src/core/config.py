# Copyright (c) 2025 Trae AI. All rights reserved.

import yaml
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel

DEFAULT_VIDEO_EXTENSIONS = [
    ".3gp", ".asf", ".asx", ".avc", ".avi", ".bdmv", ".bin", ".bivx", ".dat", ".divx", ".dv", ".dvr-ms", ".disc",
    ".evo", ".fli", ".flv", ".h264", ".ifo", ".img", ".iso", ".mts", ".mt2s", ".m2ts", ".m2v", ".m4v", ".mkv",
    ".mk3d", ".mov", ".mp4", ".mpeg", ".mpg", ".nrg", ".nsv", ".nuv", ".ogm", ".pva", ".qt", ".rm", ".rmvb",
    ".strm", ".svq3", ".ts", ".ty", ".viv", ".vob", ".vp3", ".wmv", ".webm", ".xvid",
]
DEFAULT_SUBTITLE_EXTENSIONS = [
    ".aqt", ".cvd", ".dks", ".jss", ".sub", ".sup", ".ttxt", ".mpl", ".pjs", ".psb", ".rt", ".srt", ".smi",
    ".ssf", ".ssa", ".svcd", ".usf", ".ass", ".pgs", ".vobsub", ".idx", ".vtt",
]
DEFAULT_AUDIO_EXTENSIONS = [
    ".a52", ".aa3", ".aac", ".ac3", ".adt", ".adts", ".aif", ".aiff", ".alac", ".ape", ".at3", ".atrac", ".au",
    ".dts", ".flac", ".m4a", ".m4b", ".m4p", ".mid", ".midi", ".mka", ".mp3", ".mpa", ".mlp", ".oga", ".ogg",
    ".pcm", ".ra", ".ram", ".tta", ".thd", ".wav", ".wave", ".wma",
]


class Config(BaseModel):
    datasources: List[Path] = []
    database_path: Path = Path("data/library.db")
    skip_folders: List[str] = []
    bad_words: List[str] = []
    video_extensions: List[str] = DEFAULT_VIDEO_EXTENSIONS
    subtitle_extensions: List[str] = DEFAULT_SUBTITLE_EXTENSIONS
    audio_extensions: List[str] = DEFAULT_AUDIO_EXTENSIONS
    text_extensions: List[str] = [".txt"]
    ignore_markers: List[str] = [".nomedia", ".tmmignore", "tmmignore"]
    max_depth: Optional[int] = None
    title_scan_depth: int = 2
    discovery_workers: int = 3
    inspection_workers: int = 1
    inspect_media: bool = True
    ffprobe_path: str = "ffprobe"
    server_port: int = 5000
    server_host: str = "0.0.0.0"
    scan_interval_minutes: int = 0
    watch_datasources: bool = False
    watch_debounce_seconds: int = 30
    verbose: bool = False

    @classmethod
    def load(cls, path: str = "config.yaml") -> "Config":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)
