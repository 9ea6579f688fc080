"""Git repository discovery for scope metadata.

Only two facts are needed: the repository directory name and the ``origin``
remote URL. Both come from short ``git`` subprocess calls with a timeout.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

GIT_TIMEOUT_SECONDS = 1.0


@dataclass(frozen=True)
class GitRepository:
    path: Path
    dir_name: str
    remote: str | None


def _run_git(path: Path, args: list[str], timeout_seconds: float) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            ["git", "-C", str(path), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError):
        return None


def git_repository(path: Path, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> GitRepository | None:
    """Return repository metadata for ``path``, or ``None`` outside a work tree."""
    proc = _run_git(path, ["rev-parse", "--show-toplevel"], timeout_seconds)
    if proc is None or proc.returncode != 0:
        return None
    toplevel = proc.stdout.strip()
    if not toplevel:
        return None

    repo_root = Path(toplevel).resolve()
    remote_proc = _run_git(repo_root, ["config", "--get", "remote.origin.url"], timeout_seconds)
    remote = None
    if remote_proc is not None and remote_proc.returncode == 0:
        remote = remote_proc.stdout.strip() or None
    return GitRepository(path=repo_root, dir_name=repo_root.name, remote=remote)
