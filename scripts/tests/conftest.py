"""Shared fixtures: an empty periodic archive and isolation from local config."""
from pathlib import Path

import pytest

import utils

SUBDIRS = ("journal", "weekly", "monthly", "quarterly")


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Keep the developer's .env, periodic.yaml and environment out of tests."""
    monkeypatch.setattr(utils, "SCRIPTS_DIR", tmp_path / "scripts")
    monkeypatch.setattr(utils, "DEFAULT_CONFIG", tmp_path / "scripts" / "periodic.yaml")
    for name in (utils.ENV_ROOT, utils.ENV_DAYS):
        # setenv first so monkeypatch restores the variable's absence afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def archive(tmp_path):
    root = tmp_path / "periodic"
    for sub in SUBDIRS:
        (root / sub).mkdir(parents=True)
    return root


@pytest.fixture
def write_note(archive):
    """write_note(period, text) -> Path of the created note."""
    def _write(period, text=""):
        path = archive / period.storage_subdirectory() / period.canonical_filename()
        path.write_text(text, encoding="utf-8")
        return path
    return _write
