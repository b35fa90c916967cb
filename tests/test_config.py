"""
Tests for configuration helpers.
"""

import os
from pathlib import Path

import pytest

from neuroage import config


def test_cache_dir_argument_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("NEUROAGE_CACHE_DIR", "/somewhere/else")
    assert config.get_cache_dir(str(tmp_path)) == tmp_path


def test_cache_dir_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("NEUROAGE_CACHE_DIR", str(tmp_path))
    assert config.get_cache_dir() == tmp_path


def test_cache_dir_defaults_to_working_directory(monkeypatch, tmp_path):
    monkeypatch.delenv("NEUROAGE_CACHE_DIR", raising=False)
    monkeypatch.chdir(tmp_path)
    assert config.get_cache_dir().resolve() == Path(tmp_path).resolve()


def test_download_timeout(monkeypatch):
    monkeypatch.delenv("NEUROAGE_DOWNLOAD_TIMEOUT", raising=False)
    assert config.get_download_timeout() is None

    monkeypatch.setenv("NEUROAGE_DOWNLOAD_TIMEOUT", "30")
    assert config.get_download_timeout() == 30.0


def test_validate_config_creates_directory(tmp_path):
    cache_dir = tmp_path / "cache"
    assert config.validate_config(str(cache_dir)) == cache_dir
    assert cache_dir.is_dir()


def test_validate_config_rejects_file(tmp_path):
    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x")

    with pytest.raises(RuntimeError, match="not a directory"):
        config.validate_config(str(not_a_dir))


def test_subsampled_dimension_is_half_template():
    assert config.TARGET_TEMPLATE_SUBSAMPLED_DIMENSION == (96, 112, 96)
    assert set(config.ASSET_URLS) == {
        config.TEMPLATE_FILE,
        config.MNI_AVERAGE_FILE,
        config.MNI_AVERAGE_SUBSAMPLED_FILE,
    }


def test_verbosity_from_environment(monkeypatch):
    monkeypatch.delenv("NEUROAGE_VERBOSE", raising=False)
    assert config.is_verbose()

    monkeypatch.setenv("NEUROAGE_VERBOSE", "0")
    assert not config.is_verbose()


def test_dotenv_is_read_only_on_request(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("NEUROAGE_CACHE_DIR=/from/dotenv\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NEUROAGE_CACHE_DIR", raising=False)

    assert config.get_cache_dir().resolve() == Path(tmp_path).resolve()

    try:
        config.load_environment()
        assert config.get_cache_dir() == Path("/from/dotenv")
    finally:
        os.environ.pop("NEUROAGE_CACHE_DIR", None)
