"""CLI wiring: config errors, cache commands."""

import pytest
from typer.testing import CliRunner

from polyhistory.cli import app as app_module
from polyhistory.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_logging_config(monkeypatch):
    # Cached loggers would keep a handle on the runner's closed streams
    monkeypatch.setattr(app_module, "configure_logging", lambda settings: None)


def _config(tmp_path, cache_file):
    (tmp_path / "default.toml").write_text(f'[export]\nprocessed_markets_file = "{cache_file.as_posix()}"\n')
    return tmp_path


def test_bad_config_exits_nonzero(tmp_path):
    (tmp_path / "default.toml").write_text("[search]\npage_size = 0\n")
    result = runner.invoke(app, ["--config-dir", str(tmp_path), "cache", "status"])
    assert result.exit_code == 1


def test_cache_status_and_clear(tmp_path):
    cache_file = tmp_path / "cache" / "processed.txt"
    cache_file.parent.mkdir()
    cache_file.write_text("T1\nT2\n")
    config_dir = _config(tmp_path, cache_file)

    result = runner.invoke(app, ["-C", str(config_dir), "cache", "status"])
    assert result.exit_code == 0
    assert "Processed tokens: 2" in result.output

    result = runner.invoke(app, ["-C", str(config_dir), "cache", "clear", "--yes"])
    assert result.exit_code == 0
    assert not cache_file.exists()


def test_missing_config_exits_nonzero(tmp_path):
    result = runner.invoke(app, ["-C", str(tmp_path), "cache", "status"])
    assert result.exit_code == 1


def test_orderbook_requires_argument(tmp_path):
    (tmp_path / "default.toml").write_text("")
    result = runner.invoke(app, ["-C", str(tmp_path), "orderbook"])
    assert result.exit_code != 0
