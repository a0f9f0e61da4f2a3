# Copyright (c) 2025 Trae AI. All rights reserved.

import os
import pytest
from src.core.config import Config
from src.core.skip_rules import SkipRules


@pytest.fixture
def rules(datasource):
    return SkipRules(Config(datasources=[datasource], skip_folders=[str(datasource / "Private")]))


@pytest.mark.parametrize("name", ["@eaDir", "#recycle", "$RECYCLE.BIN", "System Volume Information", "BACKUP", ".actors", "._hidden"])
def test_junk_folders_are_skipped(rules, datasource, name):
    assert rules.should_skip(datasource / name, datasource)


def test_regular_and_dot_titles_are_kept(rules, datasource):
    assert not rules.should_skip(datasource / "Inception (2010)", datasource)
    assert not rules.should_skip(datasource / ".hack Beyond the World (2018)", datasource)


def test_user_configured_folder_is_skipped(rules, datasource):
    assert rules.should_skip(datasource / "Private", datasource)
    assert not rules.should_skip(datasource / "Public", datasource)


@pytest.mark.skipif(os.name == "nt", reason="paths are case-insensitive on Windows")
def test_user_configured_folder_respects_case(rules, datasource):
    assert not rules.should_skip(datasource / "private", datasource)
    assert not rules.should_skip(datasource / "PRIVATE", datasource)


def test_ignore_marker_inside_folder(rules, datasource):
    folder = datasource / "Ignored"
    folder.mkdir()
    assert not rules.should_skip(folder, datasource)

    (folder / ".nomedia").write_text("")
    assert rules.should_skip(folder, datasource)


def test_datasource_root_is_never_skipped(datasource):
    (datasource / ".tmmignore").write_text("")
    rules = SkipRules(Config(datasources=[datasource]))
    assert not rules.should_skip(datasource, datasource)
