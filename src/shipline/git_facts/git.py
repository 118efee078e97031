# git.py
# Small, focused wrapper around the Git CLI.
# This module centralizes the Git lookups the CLI needs to describe the
# triggering event, so the rest of the codebase never calls git directly.

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional


def _git(args: list[str], cwd: Optional[str | Path] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Args:
        args: List of git arguments (e.g. ["rev-parse", "HEAD"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.

    Raises:
        subprocess.CalledProcessError: git exited non-zero (e.g. not a repo)
        FileNotFoundError: git is not installed
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def head_sha(cwd: Optional[str | Path] = None) -> str:
    """Full SHA of the current HEAD commit."""
    return _git(["rev-parse", "HEAD"], cwd=cwd)


def current_branch(cwd: Optional[str | Path] = None) -> Optional[str]:
    """
    Name of the checked-out branch.

    Resolution order:
      1. GITHUB_REF_NAME (set by hosted CI, where HEAD is usually detached)
      2. `git symbolic-ref --short HEAD`

    Returns:
        Branch name, or None on a detached HEAD outside hosted CI.
    """
    env_ref = os.environ.get("GITHUB_REF_NAME")
    if env_ref:
        return env_ref
    try:
        return _git(["symbolic-ref", "--short", "HEAD"], cwd=cwd)
    except subprocess.CalledProcessError:
        # detached HEAD
        return None


def is_dirty(cwd: Optional[str | Path] = None) -> bool:
    """True if the working tree has staged, unstaged or untracked changes."""
    return _git(["status", "--porcelain"], cwd=cwd) != ""
