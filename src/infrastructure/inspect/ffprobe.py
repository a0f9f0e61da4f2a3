# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import shutil
from typing import Optional
import ffmpeg
from src.core.models import MediaFile, TechnicalMetadata

logger = logging.getLogger(__name__)


def check_executable(ffprobe_path: str = "ffprobe") -> bool:
    return shutil.which(ffprobe_path) is not None


class FfprobeInspector:
    """
    TechnicalInspector reading stream information through ffprobe.
    """

    def __init__(self, ffprobe_path: str = "ffprobe"):
        self.ffprobe_path = ffprobe_path

    def inspect(self, media_file: MediaFile) -> Optional[TechnicalMetadata]:
        try:
            meta = ffmpeg.probe(str(media_file.path), cmd=self.ffprobe_path)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="ignore") if e.stderr else ""
            logger.warning("ffprobe failed for %s: %s", media_file.path, stderr.strip() or e)
            return None
        except OSError as e:
            logger.warning("Could not run %s: %s", self.ffprobe_path, e)
            return None
        return self.to_technical_metadata(meta)

    @staticmethod
    def to_technical_metadata(meta: dict) -> TechnicalMetadata:
        format_info = meta.get("format", {})
        streams = meta.get("streams", [])
        video_stream = next((s for s in streams if s.get("codec_type") == "video"), {})
        audio_streams = [s for s in streams if s.get("codec_type") == "audio"]
        subtitle_streams = [s for s in streams if s.get("codec_type") == "subtitle"]

        try:
            duration = float(format_info.get("duration") or 0)
        except ValueError:
            duration = 0.0

        return TechnicalMetadata(
            container_format=format_info.get("format_name", ""),
            duration=duration,
            video_codec=video_stream.get("codec_name", ""),
            width=int(video_stream.get("width") or 0),
            height=int(video_stream.get("height") or 0),
            audio_codecs=[s.get("codec_name", "") for s in audio_streams if s.get("codec_name")],
            subtitle_languages=[
                s.get("tags", {}).get("language", "und") for s in subtitle_streams
            ],
        )
