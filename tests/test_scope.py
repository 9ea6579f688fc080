from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from dips.errors import ContextPathError
from dips.git import GitRepository
from dips.models import GLOBAL_SCOPE, RuntimeDirContext, Scope
from dips.scope import context_for_path, is_path_prefix, pick_closest_scope, resolve_scope
from dips.store import Store


def _scope(scope_id: str, dir_path: str, remote: str | None = None, created_at: str = "2024-01-01T00:00:00") -> Scope:
    return Scope(
        id=scope_id,
        dir_path=dir_path,
        git_remote=remote,
        git_dir_name=None,
        created_at=created_at,
        updated_at=created_at,
    )


class PathPrefixTests(unittest.TestCase):
    def test_prefix_respects_component_boundaries(self) -> None:
        self.assertTrue(is_path_prefix("/a", "/a"))
        self.assertTrue(is_path_prefix("/a", "/a/b"))
        self.assertTrue(is_path_prefix("/", "/a"))
        self.assertFalse(is_path_prefix("/a", "/ab"))
        self.assertFalse(is_path_prefix("/a/b", "/a"))
        self.assertFalse(is_path_prefix("", "/a"))


class PickClosestScopeTests(unittest.TestCase):
    def test_longest_matching_directory_wins(self) -> None:
        outer = _scope("outer", "/a")
        inner = _scope("inner", "/a/b")

        self.assertEqual(pick_closest_scope([outer, inner], "/a/b/c", None), inner)
        self.assertEqual(pick_closest_scope([inner, outer], "/a/b", None), inner)
        self.assertEqual(pick_closest_scope([outer, inner], "/a/x", None), outer)

    def test_sibling_with_shared_string_prefix_does_not_match(self) -> None:
        self.assertIsNone(pick_closest_scope([_scope("s", "/a/b")], "/a/bc", None))

    def test_remote_match_qualifies_from_any_directory(self) -> None:
        remote = "git@example.com:team/repo.git"
        clone = _scope("clone", "/home/me/old-clone", remote=remote)

        self.assertEqual(pick_closest_scope([clone], "/tmp/new-clone", remote), clone)
        self.assertIsNone(pick_closest_scope([clone], "/tmp/new-clone", None))

    def test_longer_path_beats_shorter_remote_match(self) -> None:
        remote = "git@example.com:team/repo.git"
        by_remote = _scope("remote", "/r", remote=remote)
        by_path = _scope("path", "/work/repo/src")

        self.assertEqual(pick_closest_scope([by_remote, by_path], "/work/repo/src/lib", remote), by_path)

    def test_equal_length_prefers_earliest_created(self) -> None:
        remote = "git@example.com:team/repo.git"
        older = _scope("older", "/x/one", remote=remote, created_at="2024-01-01T00:00:00")
        newer = _scope("newer", "/y/two", remote=remote, created_at="2024-06-01T00:00:00")

        self.assertEqual(pick_closest_scope([newer, older], "/z", remote), older)

    def test_no_candidates_is_none(self) -> None:
        self.assertIsNone(pick_closest_scope([], "/a", None))


class ResolveScopeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = Store(Path(self._tmp.name) / "dips.db")
        self.store.init_schema()

    def test_empty_store_resolves_to_global(self) -> None:
        scope = resolve_scope(self.store, RuntimeDirContext(path="/work/project"))

        self.assertIs(scope, GLOBAL_SCOPE)
        self.assertEqual(scope.label(), "Global")

    def test_nested_directory_resolves_to_closest_stored_ancestor(self) -> None:
        self.store.create_dip("make", context=RuntimeDirContext(path="/a"))
        inner = self.store.create_dip("make test", context=RuntimeDirContext(path="/a/b"))

        from_deep = resolve_scope(self.store, RuntimeDirContext(path="/a/b/c"))
        from_outer = resolve_scope(self.store, RuntimeDirContext(path="/a/x"))
        from_sibling = resolve_scope(self.store, RuntimeDirContext(path="/ab"))

        self.assertEqual(from_deep.scope, inner.scope)
        self.assertEqual(from_outer.label(), "/a")
        self.assertTrue(from_sibling.is_global)

    def test_remote_resolves_other_clone(self) -> None:
        remote = "git@example.com:team/repo.git"
        created = self.store.create_dip(
            "cargo build",
            context=RuntimeDirContext(path="/home/me/repo", git_remote=remote, git_dir_name="repo"),
        )

        scope = resolve_scope(self.store, RuntimeDirContext(path="/tmp/repo-copy", git_remote=remote))

        self.assertEqual(scope.id, created.dip.scope_id)


class ContextForPathTests(unittest.TestCase):
    def test_missing_path_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ContextPathError):
                context_for_path(Path(tmp) / "missing")

    def test_plain_directory_has_no_git_facts(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("dips.scope.git_repository", return_value=None):
                context = context_for_path(Path(tmp))

        self.assertEqual(context.path, str(Path(tmp).resolve()))
        self.assertIsNone(context.git_remote)
        self.assertIsNone(context.git_dir_name)

    def test_git_facts_are_copied_from_repository(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            repo = GitRepository(path=root, dir_name=root.name, remote="https://example.com/r.git")
            with mock.patch("dips.scope.git_repository", return_value=repo):
                context = context_for_path(root)

        self.assertEqual(context.git_remote, "https://example.com/r.git")
        self.assertEqual(context.git_dir_name, root.name)


if __name__ == "__main__":
    unittest.main()
