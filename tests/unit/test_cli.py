# Copyright (c) 2025 Trae AI. All rights reserved.

import yaml
import pytest
from typer.testing import CliRunner
from src.cli.main import app
from tests.conftest import make_tree

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path, datasource):
    make_tree(datasource, ["Inception (2010)/Inception.mkv", "Heat (1995)/Heat.mkv"])
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "datasources": [str(datasource)],
        "database_path": str(tmp_path / "library.db"),
    }))
    return path


def test_scan_and_list_titles(config_file):
    result = runner.invoke(app, ["scan", "--config-path", str(config_file), "--no-inspect"])

    assert result.exit_code == 0, result.output
    assert "Synchronization Summary" in result.output

    result = runner.invoke(app, ["titles", "--config-path", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Inception" in result.output
    assert "Heat" in result.output
    assert "Found 2 titles." in result.output


def test_scan_without_datasource_fails(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"datasources": [], "database_path": str(tmp_path / "library.db")}))

    result = runner.invoke(app, ["scan", "--config-path", str(path), "--no-inspect"])

    assert result.exit_code == 1


def test_missing_config_fails(tmp_path):
    result = runner.invoke(app, ["titles", "--config-path", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Error loading config" in result.output
