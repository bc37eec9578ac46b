"""Shared fixtures and helpers for the test suite."""

from __future__ import annotations

import shutil
import subprocess
from datetime import date
from pathlib import Path

import pytest


SCENARIO_DATE = date(2024, 1, 15)


def git(path: Path, *args: str) -> subprocess.CompletedProcess[str]:
    """Run ``git`` in ``path`` and fail the test on a non-zero exit."""

    return subprocess.run(
        ["git", *args],
        cwd=path,
        check=True,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )


def init_repo(path: Path, *, identity: bool = True) -> Path:
    """Initialise a Git repository with an initial commit at ``path``."""

    path.mkdir(parents=True, exist_ok=True)
    git(path, "init")
    git(path, "config", "commit.gpgsign", "false")
    if identity:
        git(path, "config", "user.name", "Contribution Bot")
        git(path, "config", "user.email", "bot@example.com")
    (path / "README.md").write_text("# Contributions\n", encoding="utf-8")
    git(path, "add", "README.md")
    git(path, "-c", "user.name=Setup", "-c", "user.email=setup@example.com", "commit", "-m", "initial")
    return path


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    """Return a fresh Git repository with one commit."""

    if shutil.which("git") is None:
        pytest.skip("git executable is not available")
    return init_repo(tmp_path / "repo")


@pytest.fixture()
def remote_repo(tmp_path: Path, repo: Path) -> Path:
    """Attach a bare ``origin`` remote to ``repo`` and return the bare path."""

    bare = tmp_path / "origin.git"
    git(tmp_path, "init", "--bare", str(bare))
    git(repo, "remote", "add", "origin", str(bare))
    return bare


@pytest.fixture()
def scenario_date() -> date:
    return SCENARIO_DATE
