"""Shared fixtures for SpecStory test suites."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from packages.specstory_shared.config import SpecStorySettings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep host env vars and config files out of client construction."""
    for key in list(os.environ):
        if key.startswith("SPECSTORY_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(SpecStorySettings, "_config_path", tmp_path / "specstory.yaml")
