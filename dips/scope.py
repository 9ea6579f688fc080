"""Scope resolution: which stored scope owns the current directory.

A scope matches when it shares the git remote or when its directory is the
current path or one of its ancestors. The longest stored path wins.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .errors import ContextPathError
from .git import git_repository
from .log import get_logger
from .models import GLOBAL_SCOPE, ContextScope, RuntimeDirContext, Scope

logger = get_logger(__name__)


def context_for_path(path: Path) -> RuntimeDirContext:
    """Collect directory and git facts for ``path``."""
    if not path.exists():
        raise ContextPathError(f"Incorrect context path: {path}")
    resolved = path.resolve()
    repo = git_repository(resolved)
    if repo is None:
        return RuntimeDirContext(path=str(resolved))
    logger.debug("%s is inside git repository %s", resolved, repo.path)
    return RuntimeDirContext(
        path=str(resolved),
        git_remote=repo.remote,
        git_dir_name=repo.dir_name,
    )


def is_path_prefix(prefix: str, path: str) -> bool:
    """Return whether ``prefix`` is ``path`` or an ancestor directory of it."""
    if prefix == path:
        return True
    if not prefix:
        return False
    if prefix.endswith("/"):
        return path.startswith(prefix)
    return path.startswith(prefix + "/")


def pick_closest_scope(candidates: Iterable[Scope], path: str, git_remote: str | None) -> Scope | None:
    """Choose the best scope for ``path`` among ``candidates``.

    A candidate qualifies by an exact remote match or a directory-prefix
    match. Among qualifying scopes the longest ``dir_path`` wins, even over a
    shorter remote match; equal lengths keep the earliest created.
    """
    best: Scope | None = None
    for scope in candidates:
        remote_match = git_remote is not None and scope.git_remote == git_remote
        if not remote_match and not is_path_prefix(scope.dir_path, path):
            continue
        if best is None:
            best = scope
            continue
        if len(scope.dir_path) > len(best.dir_path):
            best = scope
        elif len(scope.dir_path) == len(best.dir_path) and scope.created_at < best.created_at:
            best = scope
    return best


def resolve_scope(store, context: RuntimeDirContext) -> ContextScope:
    """Resolve the effective scope for ``context``; global when nothing matches."""
    candidates = store.scope_candidates(context.path, context.git_remote)
    scope = pick_closest_scope(candidates, context.path, context.git_remote)
    if scope is None:
        logger.debug("no scope matches %s; using global", context.path)
        return GLOBAL_SCOPE
    logger.debug("resolved %s to scope %s (%s)", context.path, scope.id, scope.dir_path)
    return ContextScope(scope)
