# Copyright (c) 2025 Trae AI. All rights reserved.

import pytest
from pathlib import Path
from src.core.classifier import FileClassifier
from src.core.config import Config
from src.core.models import MediaFileType


@pytest.fixture
def classifier():
    return FileClassifier(Config())


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/m/Inception/Inception.mkv", MediaFileType.VIDEO),
        ("/m/Inception/Inception-trailer.mkv", MediaFileType.TRAILER),
        ("/m/Inception/Inception-sample.mkv", MediaFileType.SAMPLE),
        ("/m/Inception/extras/Making of.mkv", MediaFileType.VIDEO_EXTRA),
        ("/m/Inception/Inception.EXTRAS.Interview.mkv", MediaFileType.VIDEO_EXTRA),
        ("/m/Inception/poster.jpg", MediaFileType.POSTER),
        ("/m/Inception/Inception-fanart.jpg", MediaFileType.FANART),
        ("/m/Inception/extrafanart/fanart1.jpg", MediaFileType.EXTRAFANART),
        ("/m/Inception/extrathumbs/thumb1.jpg", MediaFileType.EXTRATHUMB),
        ("/m/Inception/disc.png", MediaFileType.DISCART),
        ("/m/Inception/movieset-poster.jpg", MediaFileType.GRAPHIC),
        ("/m/Inception/Inception.jpg", MediaFileType.GRAPHIC),
        ("/m/Inception/Inception.nfo", MediaFileType.NFO),
        ("/m/Inception/Inception.mkv.vsmeta", MediaFileType.BINARY_SIDECAR),
        ("/m/Inception/Inception.srt", MediaFileType.SUBTITLE),
        ("/m/Inception/Inception.eng.srt.rar", MediaFileType.SUBTITLE),
        ("/m/Inception/Inception.mkv.part", MediaFileType.DOUBLE_EXT),
        ("/m/Inception/Inception.mp3", MediaFileType.AUDIO),
        ("/m/Inception/readme.txt", MediaFileType.TEXT),
        ("/m/Inception/notes.xyz", MediaFileType.UNKNOWN),
        ("/m/Rip/BDMV/STREAM/00001.m2ts", MediaFileType.VIDEO),
        ("/m/Rip/BDMV/index.bdmv", MediaFileType.VIDEO),
        ("/m/Rip/VIDEO_TS/VTS_01_1.VOB", MediaFileType.VIDEO),
        ("/m/Rip/HVDVD_TS/FEATURE_1.EVO", MediaFileType.VIDEO),
    ],
)
def test_classify(classifier, path, expected):
    assert classifier.classify(Path(path)) == expected


def test_artwork_name_wins_over_disc_path(classifier):
    assert classifier.classify(Path("/m/Rip/VIDEO_TS/poster.jpg")) == MediaFileType.POSTER


def test_disc_files_are_video_regardless_of_extension_list():
    classifier = FileClassifier(Config(video_extensions=[".mkv"]))
    assert classifier.classify(Path("/m/Rip/BDMV/STREAM/00001.m2ts")) == MediaFileType.VIDEO
    assert classifier.classify(Path("/m/Other/clip.m2ts")) == MediaFileType.UNKNOWN


def test_create_media_file_reads_size(classifier, tmp_path):
    video = tmp_path / "Movie.mkv"
    video.write_bytes(b"12345")
    mf = classifier.create_media_file(video)
    assert mf.type == MediaFileType.VIDEO
    assert mf.extension == ".mkv"
    assert mf.size == 5

    missing = classifier.create_media_file(tmp_path / "Gone.mkv")
    assert missing.size == 0
