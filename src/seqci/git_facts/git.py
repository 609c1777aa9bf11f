# git.py
# Small, focused wrapper around the Git CLI.
# This module centralizes all Git interactions so the rest of the codebase
# never needs to call subprocess("git ...") directly.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, List, Optional


def _git(args: list[str], cwd: str | Path | None = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    This is the single low-level entry point for all Git operations in this file.

    Args:
        args: List of git arguments (e.g. ["status", "--porcelain"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.

    Raises:
        subprocess.CalledProcessError: git exited non-zero
        FileNotFoundError: git is not installed
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        text=True,
        stderr=subprocess.PIPE,
    )
    return out.strip()


def is_repo(path: str | Path) -> bool:
    """True if `path` is inside a git work tree."""
    try:
        return _git(["rev-parse", "--is-inside-work-tree"], cwd=path) == "true"
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError):
        return False


def head_sha(cwd: str | Path | None = None) -> str:
    """Return the full SHA hash of the current HEAD commit."""
    return _git(["rev-parse", "HEAD"], cwd=cwd)


def current_branch(cwd: str | Path | None = None) -> Optional[str]:
    """Current branch name, or None on a detached HEAD."""
    name = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)
    return None if name == "HEAD" else name


def remotes(cwd: str | Path | None = None) -> List[Dict[str, str]]:
    """
    All fetch remotes as [{"name": ..., "url": ...}].

    `git remote -v` prints each remote twice (fetch + push); keep fetch only.
    """
    out = _git(["remote", "-v"], cwd=cwd)
    found: List[Dict[str, str]] = []
    for line in out.splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[2] == "(fetch)":
            found.append({"name": parts[0], "url": parts[1]})
    return found


def head_commit(cwd: str | Path | None = None) -> Dict[str, str]:
    """
    Metadata of HEAD in the shape coverage services expect:
    id, author/committer name + email, message.
    """
    # unit separator keeps multi-word fields intact
    fmt = "%x1f".join(["%H", "%an", "%ae", "%cn", "%ce", "%s"])
    out = _git(["log", "-1", f"--format={fmt}"], cwd=cwd)
    keys = ["id", "author_name", "author_email", "committer_name", "committer_email", "message"]
    values = out.split("\x1f")
    values += [""] * (len(keys) - len(values))
    return dict(zip(keys, values))


def clone(url: str, dest: str | Path) -> None:
    _git(["clone", url, str(dest)])


def fetch(cwd: str | Path, remote: str = "origin") -> None:
    _git(["fetch", remote], cwd=cwd)


def checkout(ref: str, cwd: str | Path) -> None:
    _git(["checkout", ref], cwd=cwd)
