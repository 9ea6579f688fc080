"""SQLite storage gateway for dips.

Every operation opens its own connection and runs in one transaction, so a
``Store`` can be handed to background threads without sharing a connection.
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from .errors import DuplicateDipError, StoreError
from .log import get_logger
from .models import (
    ALL_SCOPES,
    ContextGroup,
    CreatedDip,
    Dip,
    DipsFilter,
    RuntimeDirContext,
    Scope,
    ScopesFilter,
)

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS dir_contexts (
    id TEXT PRIMARY KEY,
    git_remote TEXT,
    git_dir_name TEXT,
    dir_path TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS context_groups (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    dir_context_id TEXT REFERENCES dir_contexts(id),
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS dips (
    id TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    note TEXT,
    dir_context_id TEXT REFERENCES dir_contexts(id),
    context_group_id TEXT REFERENCES context_groups(id),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tags (
    id TEXT PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS dips_tags (
    dip_id TEXT NOT NULL REFERENCES dips(id) ON DELETE CASCADE,
    tag_id TEXT NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (dip_id, tag_id)
);

CREATE INDEX IF NOT EXISTS idx_dips_dir_context ON dips(dir_context_id);
CREATE INDEX IF NOT EXISTS idx_dir_contexts_path ON dir_contexts(dir_path);
"""

_DIP_SELECT = """
    SELECT d.id, d.value, d.note, d.dir_context_id, d.context_group_id,
           d.created_at, d.updated_at,
           (SELECT group_concat(t.name, char(31)) FROM dips_tags dt
            JOIN tags t ON t.id = dt.tag_id
            WHERE dt.dip_id = d.id) AS tag_names
    FROM dips d
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def _like_pattern(search: str) -> str:
    """Build a ``LIKE`` substring pattern for ``casefold()``-ed columns, wildcards escaped."""
    escaped = search.casefold().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _row_to_dip(row: sqlite3.Row) -> Dip:
    raw_tags = row["tag_names"]
    tags = tuple(sorted(raw_tags.split("\x1f"))) if raw_tags else ()
    return Dip(
        id=row["id"],
        value=row["value"],
        note=row["note"],
        scope_id=row["dir_context_id"],
        group_id=row["context_group_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        tags=tags,
    )


def _row_to_scope(row: sqlite3.Row) -> Scope:
    return Scope(
        id=row["id"],
        dir_path=row["dir_path"],
        git_remote=row["git_remote"],
        git_dir_name=row["git_dir_name"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class Store:
    """Narrow gateway over the dips database file."""

    def __init__(self, db_path: Path, timeout_seconds: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds

    @contextmanager
    def _connect(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside one transaction; commit or roll back on exit.

        ``write=True`` takes the write lock up front so read-then-insert
        sequences cannot interleave with another writer.
        """
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout_seconds)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to open database: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            # SQLite lower() only folds ASCII; searches compare casefold() on both sides.
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            conn.execute("PRAGMA foreign_keys = ON")
            if write:
                conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.warning("store operation failed: %s", exc)
            raise StoreError(f"Database error: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create the database file and tables if they do not exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    def check(self) -> None:
        """Open the store once so bootstrap failures surface before the UI starts."""
        with self._connect() as conn:
            conn.execute("SELECT 1 FROM dips LIMIT 1").fetchall()

    # -- dips -----------------------------------------------------------------

    def list_dips(self, dips_filter: DipsFilter | None = None) -> list[Dip]:
        dips_filter = dips_filter or DipsFilter()
        clauses: list[str] = []
        params: list[object] = []
        if dips_filter.scope_id is None:
            clauses.append("d.dir_context_id IS NULL")
        elif dips_filter.scope_id != ALL_SCOPES:
            clauses.append("d.dir_context_id = ?")
            params.append(dips_filter.scope_id)
        if dips_filter.search:
            clauses.append("casefold(d.value) LIKE ? ESCAPE '\\'")
            params.append(_like_pattern(dips_filter.search))

        sql = _DIP_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY d.created_at, d.value"
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_dip(row) for row in rows]

    def create_dip(
        self,
        value: str,
        *,
        context: RuntimeDirContext | None = None,
        scope_id: str | None = None,
        group: str | None = None,
        note: str | None = None,
    ) -> CreatedDip:
        """Insert a dip, creating its scope and group first when needed.

        ``context`` wins over ``scope_id``; passing neither stores a global dip.
        The scope lookup, duplicate check, and insert share one transaction.
        """
        value = value.strip()
        if not value:
            raise StoreError("Cannot add an empty dip.")

        with self._connect(write=True) as conn:
            scope: Scope | None = None
            created_scope = False
            if context is not None:
                scope, created_scope = self._find_or_create_scope(conn, context)
            elif scope_id is not None:
                row = conn.execute("SELECT * FROM dir_contexts WHERE id = ?", (scope_id,)).fetchone()
                if row is None:
                    raise StoreError("Scope no longer exists.")
                scope = _row_to_scope(row)

            owner_id = scope.id if scope is not None else None
            group_row = self._find_or_create_group(conn, group, owner_id) if group else None
            group_id = group_row.id if group_row is not None else None

            if self._value_exists(conn, value, owner_id, group_id):
                raise DuplicateDipError(value)

            now = _now()
            dip = Dip(
                id=_new_id(),
                value=value,
                note=note,
                scope_id=owner_id,
                group_id=group_id,
                created_at=now,
                updated_at=now,
            )
            conn.execute(
                """
                INSERT INTO dips (id, value, note, dir_context_id, context_group_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (dip.id, dip.value, dip.note, dip.scope_id, dip.group_id, dip.created_at, dip.updated_at),
            )
        logger.info("created dip %s in scope %s", dip.id, owner_id or "global")
        return CreatedDip(dip=dip, scope=scope, created_scope=created_scope)

    def delete_dip(self, dip_id: str) -> int:
        """Delete by id and return affected rows; deleting twice returns 0."""
        with self._connect(write=True) as conn:
            cursor = conn.execute("DELETE FROM dips WHERE id = ?", (dip_id,))
            return cursor.rowcount

    def tag_dip(self, dip_id: str, name: str) -> str:
        """Attach tag ``name`` to a dip and return the tag id."""
        name = name.strip()
        if not name:
            raise StoreError("Tag name cannot be empty.")
        with self._connect(write=True) as conn:
            exists = conn.execute("SELECT 1 FROM dips WHERE id = ?", (dip_id,)).fetchone()
            if exists is None:
                raise StoreError("Dip no longer exists.")
            row = conn.execute("SELECT id FROM tags WHERE name = ?", (name,)).fetchone()
            if row is not None:
                tag_id = row["id"]
            else:
                tag_id = _new_id()
                conn.execute(
                    "INSERT INTO tags (id, name, created_at) VALUES (?, ?, ?)",
                    (tag_id, name, _now()),
                )
            conn.execute(
                "INSERT OR IGNORE INTO dips_tags (dip_id, tag_id) VALUES (?, ?)",
                (dip_id, tag_id),
            )
            return tag_id

    @staticmethod
    def _value_exists(
        conn: sqlite3.Connection,
        value: str,
        scope_id: str | None,
        group_id: str | None,
    ) -> bool:
        row = conn.execute(
            """
            SELECT 1 FROM dips
            WHERE value = ? AND dir_context_id IS ? AND context_group_id IS ?
            LIMIT 1
            """,
            (value, scope_id, group_id),
        ).fetchone()
        return row is not None

    # -- scopes ---------------------------------------------------------------

    def list_scopes(self, scopes_filter: ScopesFilter | None = None) -> list[Scope]:
        scopes_filter = scopes_filter or ScopesFilter()
        with self._connect() as conn:
            if scopes_filter.search:
                pattern = _like_pattern(scopes_filter.search)
                rows = conn.execute(
                    """
                    SELECT * FROM dir_contexts
                    WHERE casefold(dir_path) LIKE ? ESCAPE '\\'
                       OR casefold(coalesce(git_remote, '')) LIKE ? ESCAPE '\\'
                    ORDER BY dir_path, created_at
                    """,
                    (pattern, pattern),
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM dir_contexts ORDER BY dir_path, created_at").fetchall()
        return [_row_to_scope(row) for row in rows]

    def scope_candidates(self, path: str, git_remote: str | None) -> list[Scope]:
        """Return scopes sharing ``git_remote`` or whose path is a string prefix of ``path``."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM dir_contexts
                WHERE (git_remote IS NOT NULL AND git_remote = ?)
                   OR substr(?, 1, length(dir_path)) = dir_path
                ORDER BY length(dir_path) DESC, created_at
                """,
                (git_remote, path),
            ).fetchall()
        return [_row_to_scope(row) for row in rows]

    def find_or_create_scope(self, context: RuntimeDirContext) -> Scope:
        with self._connect(write=True) as conn:
            scope, _created = self._find_or_create_scope(conn, context)
        return scope

    @staticmethod
    def _find_or_create_scope(conn: sqlite3.Connection, context: RuntimeDirContext) -> tuple[Scope, bool]:
        row = conn.execute(
            """
            SELECT * FROM dir_contexts
            WHERE dir_path = ? AND git_remote IS ? AND git_dir_name IS ?
            ORDER BY created_at
            LIMIT 1
            """,
            (context.path, context.git_remote, context.git_dir_name),
        ).fetchone()
        if row is not None:
            return _row_to_scope(row), False

        now = _now()
        scope = Scope(
            id=_new_id(),
            dir_path=context.path,
            git_remote=context.git_remote,
            git_dir_name=context.git_dir_name,
            created_at=now,
            updated_at=now,
        )
        conn.execute(
            """
            INSERT INTO dir_contexts (id, dir_path, git_remote, git_dir_name, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (scope.id, scope.dir_path, scope.git_remote, scope.git_dir_name, scope.created_at, scope.updated_at),
        )
        logger.info("created scope %s for %s", scope.id, scope.dir_path)
        return scope, True

    # -- groups ---------------------------------------------------------------

    @staticmethod
    def _find_or_create_group(conn: sqlite3.Connection, name: str, scope_id: str | None) -> ContextGroup:
        row = conn.execute(
            "SELECT * FROM context_groups WHERE name = ? AND dir_context_id IS ? LIMIT 1",
            (name, scope_id),
        ).fetchone()
        if row is not None:
            return ContextGroup(
                id=row["id"],
                name=row["name"],
                scope_id=row["dir_context_id"],
                created_at=row["created_at"],
            )
        group = ContextGroup(id=_new_id(), name=name, scope_id=scope_id, created_at=_now())
        conn.execute(
            "INSERT INTO context_groups (id, name, dir_context_id, created_at) VALUES (?, ?, ?, ?)",
            (group.id, group.name, group.scope_id, group.created_at),
        )
        return group
