# Copyright (c) 2025 Trae AI. All rights reserved.

import ffmpeg
from pathlib import Path
from unittest.mock import MagicMock, patch
from src.core.models import MediaFile, MediaFileType, NotificationLevel
from src.infrastructure.inspect.ffprobe import FfprobeInspector
from src.services.notification_service import NotificationService

PROBE_OUTPUT = {
    "format": {"format_name": "matroska,webm", "duration": "8880.5"},
    "streams": [
        {"codec_type": "video", "codec_name": "h264", "width": 1920, "height": 800},
        {"codec_type": "audio", "codec_name": "dts"},
        {"codec_type": "audio", "codec_name": "ac3"},
        {"codec_type": "subtitle", "codec_name": "subrip", "tags": {"language": "eng"}},
        {"codec_type": "subtitle", "codec_name": "subrip"},
    ],
}


def test_render_messages():
    assert NotificationService.render("update.title.novideo", ("Inception",)) == "No video file found for title Inception"
    assert NotificationService.render("update.datasource.unavailable") == "Datasource {0} is not available, skipping it"
    assert NotificationService.render("some.other.key", ("a", "b")) == "some.other.key a b"


def test_push_writes_operation_log():
    log_repo = MagicMock()
    service = NotificationService(log_repo)

    service.push(NotificationLevel.ERROR, "/movies/Lonely", "update.title.novideo", ("Lonely",))

    log_repo.add.assert_called_once_with("ERROR", "/movies/Lonely", "No video file found for title Lonely")


def test_push_without_repository():
    NotificationService().push(NotificationLevel.INFO, "sync", "update.datasource.nonespecified")


def test_probe_output_is_mapped():
    meta = FfprobeInspector.to_technical_metadata(PROBE_OUTPUT)

    assert meta.container_format == "matroska,webm"
    assert meta.duration == 8880.5
    assert (meta.video_codec, meta.width, meta.height) == ("h264", 1920, 800)
    assert meta.audio_codecs == ["dts", "ac3"]
    assert meta.subtitle_languages == ["eng", "und"]


def test_inspect_calls_ffprobe():
    media_file = MediaFile(path=Path("/movies/Inception/Inception.mkv"), type=MediaFileType.VIDEO)
    with patch("ffmpeg.probe", return_value=PROBE_OUTPUT) as probe:
        meta = FfprobeInspector("/usr/bin/ffprobe").inspect(media_file)

    probe.assert_called_once_with("/movies/Inception/Inception.mkv", cmd="/usr/bin/ffprobe")
    assert meta.video_codec == "h264"


def test_inspect_failure_returns_none():
    media_file = MediaFile(path=Path("/movies/Broken/Broken.mkv"), type=MediaFileType.VIDEO)
    inspector = FfprobeInspector()

    with patch("ffmpeg.probe", side_effect=ffmpeg.Error("ffprobe", b"", b"Invalid data found")):
        assert inspector.inspect(media_file) is None
    with patch("ffmpeg.probe", side_effect=FileNotFoundError("ffprobe")):
        assert inspector.inspect(media_file) is None
