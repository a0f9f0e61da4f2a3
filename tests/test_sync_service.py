# Copyright (c) 2025 Trae AI. All rights reserved.

import shutil
import pytest
from unittest.mock import MagicMock, patch
from src.core.config import Config
from src.core.errors import SyncConfigurationError
from src.core.models import MediaFileType, NotificationLevel, TechnicalMetadata
from src.core.session import CancellationToken
from src.services.sync_service import LibrarySyncService
from tests.conftest import make_tree

LIBRARY = [
    "Inception/Inception.mkv",
    "Inception/Inception.nfo",
    "Inception/poster.jpg",
    "Mixed/Movie A.mkv",
    "Mixed/Movie A.srt",
    "Mixed/Movie B.mkv",
    "Mixed/Movie B-poster.jpg",
    "Title/CD1/video.mkv",
    "Title/CD2/video.mkv",
    "Rip/BDMV/index.bdmv",
    "Rip/BDMV/STREAM/00001.m2ts",
    "@eaDir/Inception.mkv",
]


@pytest.fixture
def service(config, memory_store, notifier):
    return LibrarySyncService(config, memory_store, notifier)


def pushed_keys(notifier):
    return [c[0][2] for c in notifier.push.call_args_list]


def names(title):
    return sorted(mf.filename for mf in title.media_files)


def test_full_library_sync(service, datasource, memory_store):
    make_tree(datasource, LIBRARY)

    report = service.run()

    assert report.titles_added == 5
    assert report.titles_removed == 0
    assert not report.cancelled
    assert report.pre_dir == report.post_dir == 9
    assert report.visited_files == 11

    inception = memory_store.by_title("Inception")[0]
    assert inception.path == datasource / "Inception"
    assert names(inception) == ["Inception.mkv", "Inception.nfo", "poster.jpg"]

    movie_a = memory_store.by_title("Movie A")[0]
    movie_b = memory_store.by_title("Movie B")[0]
    assert movie_a.path == movie_b.path == datasource / "Mixed"
    assert names(movie_a) == ["Movie A.mkv", "Movie A.srt"]
    assert names(movie_b) == ["Movie B-poster.jpg", "Movie B.mkv"]

    stacked = memory_store.by_title("Title")[0]
    assert stacked.path == datasource / "Title"
    assert len(stacked.get_media_files(MediaFileType.VIDEO)) == 2

    (disc,) = [t for t in memory_store.titles.values() if t.path == datasource / "Rip"]
    assert disc.disc


def test_second_run_is_idempotent(service, datasource, memory_store):
    make_tree(datasource, LIBRARY)
    service.run()
    upserts = len(memory_store.upserts)

    report = service.run()

    assert len(memory_store.upserts) == upserts
    assert memory_store.removals == []
    assert (report.titles_added, report.titles_updated, report.titles_removed) == (0, 0, 0)


def test_deleted_title_and_file_are_cleaned_up(service, datasource, memory_store):
    make_tree(datasource, LIBRARY)
    service.run()
    shutil.rmtree(datasource / "Inception")
    (datasource / "Mixed" / "Movie A.srt").unlink()

    report = service.run()

    assert report.titles_removed == 1
    assert report.files_detached == 1
    assert memory_store.by_title("Inception") == []
    movie_a = memory_store.by_title("Movie A")[0]
    assert names(movie_a) == ["Movie A.mkv"]
    assert not movie_a.has_subtitles


def test_multi_title_folder_shrinking_to_one_title(service, datasource, memory_store):
    make_tree(datasource, ["Mixed/Movie A.mkv", "Mixed/Movie B.mkv"])
    service.run()
    movie_b_id = memory_store.by_title("Movie B")[0].id
    (datasource / "Mixed" / "Movie A.mkv").unlink()

    service.run()

    owners = [t for t in memory_store.titles.values() if t.has_media_file(datasource / "Mixed" / "Movie B.mkv")]
    assert len(owners) == 1
    (movie_b,) = owners
    assert movie_b.id == movie_b_id
    assert movie_b.title == "Movie B"
    assert not movie_b.multi_title_dir
    assert names(movie_b) == ["Movie B.mkv"]
    assert memory_store.by_title("Movie A") == []


def test_disc_next_to_loose_video_is_one_title(service, datasource, memory_store):
    make_tree(datasource, ["Rip/movie.mkv", "Rip/BDMV/index.bdmv", "Rip/BDMV/STREAM/00001.m2ts"])

    report = service.run()

    assert report.titles_added == 1
    (disc,) = memory_store.titles.values()
    assert disc.path == datasource / "Rip"
    assert disc.disc
    assert names(disc) == ["00001.m2ts", "index.bdmv", "movie.mkv"]


def test_run_restricted_to_one_datasource(memory_store, notifier, tmp_path):
    first, second = tmp_path / "first", tmp_path / "second"
    make_tree(first, ["Heat/Heat.mkv"])
    make_tree(second, ["Inception/Inception.mkv"])
    service = LibrarySyncService(Config(datasources=[first, second], inspect_media=False), memory_store, notifier)

    report = service.run(datasources=[second])

    assert report.datasources == [second]
    assert [t.title for t in memory_store.titles.values()] == ["Inception"]


def test_missing_datasource_configuration(memory_store, notifier):
    service = LibrarySyncService(Config(datasources=[]), memory_store, notifier)

    with pytest.raises(SyncConfigurationError):
        service.run()

    notifier.push.assert_called_once_with(NotificationLevel.ERROR, "sync", "update.datasource.nonespecified")


def test_unavailable_datasources_are_skipped(memory_store, notifier, tmp_path):
    available = make_tree(tmp_path / "movies", ["Heat/Heat.mkv"])
    empty = tmp_path / "empty"
    empty.mkdir()
    missing = tmp_path / "missing"
    service = LibrarySyncService(Config(datasources=[missing, empty, available], inspect_media=False), memory_store, notifier)

    report = service.run()

    assert report.titles_added == 1
    assert pushed_keys(notifier) == ["update.datasource.unavailable", "update.datasource.unavailable"]


def test_cancelled_run(service, datasource, memory_store):
    make_tree(datasource, LIBRARY)
    token = CancellationToken()
    token.cancel()

    report = service.run(token=token)

    assert report.cancelled
    assert memory_store.titles == {}


def test_progress_is_reported(service, datasource):
    make_tree(datasource, ["Heat/Heat.mkv"])
    progress = MagicMock()

    service.run(update_progress=progress)

    assert progress.call_args_list[0][0][0] == 0
    progress.assert_called_with(100, "Synchronization complete")


def test_crashing_task_is_reported(service, datasource, notifier, memory_store):
    make_tree(datasource, ["Heat/Heat.mkv"])

    with patch.object(service.assembler, "assemble", side_effect=RuntimeError("boom")):
        report = service.run()

    assert report.titles_added == 0
    assert "message.update.threadcrashed" in pushed_keys(notifier)
    assert memory_store.titles == {}


def test_media_inspection(datasource, memory_store, notifier):
    make_tree(datasource, [
        "Inception/Inception.mkv",
        "Offline/Offline.disc",
        "Rip/BDMV/index.bdmv",
        "Rip/BDMV/STREAM/00001.m2ts",
    ])
    inspector = MagicMock()
    inspector.inspect.return_value = TechnicalMetadata(video_codec="h264", width=1920, height=1080)
    config = Config(datasources=[datasource], inspect_media=True)
    service = LibrarySyncService(config, memory_store, notifier, inspector=inspector)

    report = service.run()

    assert report.inspected_files == 2
    inspected = sorted(c[0][0].filename for c in inspector.inspect.call_args_list)
    assert inspected == ["00001.m2ts", "Inception.mkv"]
    inception = memory_store.by_title("Inception")[0]
    assert inception.video_files[0].technical.video_codec == "h264"

    # cached technical data is not inspected again
    report = service.run()
    assert report.inspected_files == 0
    assert inspector.inspect.call_count == 2
