"""Helpers for tests that drive a real git executable in temporary repositories."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


def run_git(cwd: Path, *args: str) -> str:
    completed = subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test User",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        check=True,
        text=True,
        capture_output=True,
    )
    return completed.stdout.strip()


def init_repo(path: Path, branch: str = "main") -> Path:
    path.mkdir(parents=True)
    run_git(path, "init", "--quiet")
    run_git(path, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
    return path


def commit(repo: Path, filename: str, content: str) -> str:
    (repo / filename).write_text(content, encoding="utf-8")
    run_git(repo, "add", filename)
    run_git(repo, "commit", "--quiet", "-m", f"Update {filename}")
    return run_git(repo, "rev-parse", "HEAD")
