"""Shared pytest fixtures for rnm tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import pytest

from rnm.core import RenameOptions


@pytest.fixture
def make_files(tmp_path: Path) -> Callable[..., List[Path]]:
    """Create files in the temporary directory.

    Args:
        tmp_path: Pytest temporary directory fixture

    Returns:
        Factory taking filenames; each file's content is its own name
    """
    def _make(*names: str) -> List[Path]:
        paths = []
        for name in names:
            path = tmp_path / name
            path.write_text(name)
            paths.append(path)
        return paths

    return _make


@pytest.fixture
def options() -> RenameOptions:
    """Case-sensitive options so results don't depend on the host OS.

    Returns:
        Rename options with case-insensitive detection off
    """
    return RenameOptions(case_insensitive_detect=False)


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config location at a temporary file.

    Args:
        tmp_path: Pytest temporary directory fixture
        monkeypatch: Pytest monkeypatch fixture

    Returns:
        Path of the (not yet existing) config file
    """
    path = tmp_path / "config" / "config.json"
    monkeypatch.setenv("RNM_CONFIG", str(path))
    return path
