"""Shared pytest fixtures for mcpreg tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from mcpreg.config import Settings
from tests._fakes import RecordingRunner


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point config and logs at tmp_path and drop handlers afterwards."""
    monkeypatch.setenv("MCPREG_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("MCPREG_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.delenv("MCPREG_COLLABORATOR", raising=False)
    monkeypatch.delenv("MCPREG_MANIFEST", raising=False)
    yield tmp_path
    logger = logging.getLogger("mcpreg")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(collaborator="claude", log_dir=tmp_path / "logs")


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
