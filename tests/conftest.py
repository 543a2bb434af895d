"""Shared fixtures for history and tool tests."""

import os
import stat
from pathlib import Path

import pytest

from blvdiff.config.schema import BlvdiffConfig


@pytest.fixture
def history_root(tmp_path):
    """Create an empty history root with both default partitions."""
    root = tmp_path / "history"
    (root / "err_history").mkdir(parents=True)
    (root / "std_history").mkdir(parents=True)
    return root


@pytest.fixture
def make_snapshot():
    """Write a snapshot file with a fixed mtime."""

    def _make(directory: Path, name: str, content: str, mtime: float) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(content, encoding="utf-8")
        os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture
def make_tool(tmp_path):
    """Create an executable shell script standing in for blvflag."""

    def _make(body: str, name: str = "blvflag") -> Path:
        path = tmp_path / "bin" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def config(tmp_path, history_root):
    """Config pointing at the temporary history root and temp dir."""
    return BlvdiffConfig(
        history={"root": str(history_root)},
        diff={"temp_dir": str(tmp_path / "tmp")},
        tool={"binary_path": str(tmp_path / "bin" / "blvflag")},
    )
