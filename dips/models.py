"""Stored records and query filters.

``Dip`` rows are returned with their tag names already attached.
``ContextScope`` is the resolved view scope: a stored ``Scope`` or global.
"""

from __future__ import annotations

from dataclasses import dataclass

GLOBAL_LABEL = "Global"


@dataclass(frozen=True)
class Scope:
    """A directory (and optional git repository) that owns dips."""

    id: str
    dir_path: str
    git_remote: str | None
    git_dir_name: str | None
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class Dip:
    id: str
    value: str
    note: str | None
    scope_id: str | None
    group_id: str | None
    created_at: str
    updated_at: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContextGroup:
    id: str
    name: str
    scope_id: str | None
    created_at: str


@dataclass(frozen=True)
class ContextScope:
    """Scope used for filtering and ownership; ``scope is None`` means global."""

    scope: Scope | None = None

    @property
    def id(self) -> str | None:
        return self.scope.id if self.scope is not None else None

    @property
    def is_global(self) -> bool:
        return self.scope is None

    def label(self) -> str:
        if self.scope is None:
            return GLOBAL_LABEL
        return self.scope.dir_path


GLOBAL_SCOPE = ContextScope()

# Sentinel for ``DipsFilter.scope_id``: do not restrict by scope at all.
ALL_SCOPES = "*"


@dataclass(frozen=True)
class DipsFilter:
    """Dip query: ``scope_id=None`` selects global dips, ``ALL_SCOPES`` selects all."""

    scope_id: str | None = ALL_SCOPES
    search: str = ""


@dataclass(frozen=True)
class ScopesFilter:
    search: str = ""


@dataclass(frozen=True)
class CreatedDip:
    """Result of an insert: the dip plus the scope it was stored under."""

    dip: Dip
    scope: Scope | None
    created_scope: bool = False


@dataclass(frozen=True)
class RuntimeDirContext:
    """Where the user is standing: working directory plus git facts."""

    path: str
    git_remote: str | None = None
    git_dir_name: str | None = None
