"""CLI subcommand behavior tests.

Each test points ``DIPS_HOME``/``DIPS_CONFIG`` at a temporary directory and
runs ``dips.cli.main`` with explicit argv and working directory.
"""

from __future__ import annotations

import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from dips import __version__, cli
from dips.log import setup_logging


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name).resolve()
        self.project = self.root / "project"
        (self.project / "sub").mkdir(parents=True)
        env = mock.patch.dict(
            "dips.config.os.environ",
            {"DIPS_HOME": str(self.root / "home"), "DIPS_CONFIG": str(self.root / "config.json")},
            clear=True,
        )
        env.start()
        self.addCleanup(env.stop)
        no_git = mock.patch("dips.scope.git_repository", return_value=None)
        no_git.start()
        self.addCleanup(no_git.stop)
        self.addCleanup(setup_logging, "WARNING", None)

    def run_cli(self, *argv: str, cwd: Path | None = None) -> str:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            cli.main(list(argv), cwd=cwd or self.project)
        return out.getvalue()


class CliCommandTests(CliTestCase):
    def test_commands_before_init_print_hint(self) -> None:
        for argv in (["get"], ["add", "ls"], []):
            with self.subTest(argv=argv):
                self.assertEqual(self.run_cli(*argv), "Dips is not initialized. Please run `dips init`\n")

    def test_init_creates_database(self) -> None:
        self.assertEqual(self.run_cli("init"), "Dips got initialized.\n")
        self.assertTrue((self.root / "home" / "dips.db").is_file())
        self.assertEqual(self.run_cli("init"), "Dips got initialized.\n")

    def test_get_on_fresh_database_reports_global_and_no_items(self) -> None:
        self.run_cli("init")

        self.assertEqual(self.run_cli("get"), "Scope: Global\nNo items found.\n")

    def test_add_then_get_from_nested_directory(self) -> None:
        self.run_cli("init")

        self.assertEqual(self.run_cli("add", "make test"), "Dip make test added.\n")
        output = self.run_cli("get", cwd=self.project / "sub")

        self.assertEqual(output, f"Scope: {self.project}\nmake test\n")

    def test_duplicate_add_is_reported_without_failure(self) -> None:
        self.run_cli("init")
        self.run_cli("add", "make")

        self.assertEqual(self.run_cli("add", "make"), "make is already added in this context.\n")
        self.assertEqual(self.run_cli("add", "make", "--group", "build"), "Dip make added.\n")

    def test_global_add_and_get_all(self) -> None:
        self.run_cli("init")
        self.run_cli("add", "htop", "--global")
        self.run_cli("add", "make")

        self.assertEqual(self.run_cli("get", cwd=self.root), "Scope: Global\nhtop\n")
        self.assertEqual(sorted(self.run_cli("get", "--all").splitlines()), ["htop", "make"])

    def test_missing_working_directory_exits_with_error(self) -> None:
        self.run_cli("init")
        err = io.StringIO()

        with contextlib.redirect_stderr(err), self.assertRaises(SystemExit) as caught:
            self.run_cli("get", cwd=self.root / "gone")

        self.assertEqual(caught.exception.code, 1)
        self.assertIn("Incorrect context path", err.getvalue())

    def test_version_flag(self) -> None:
        out = io.StringIO()
        with contextlib.redirect_stdout(out), self.assertRaises(SystemExit) as caught:
            cli.main(["--version"])

        self.assertEqual(caught.exception.code, 0)
        self.assertEqual(out.getvalue().strip(), f"dips {__version__}")

    def test_no_subcommand_starts_interactive_session(self) -> None:
        with mock.patch("dips.cli.run_session") as run_session:
            self.run_cli()

        run_session.assert_called_once()
        settings, cwd = run_session.call_args.args
        self.assertEqual(settings.database_path, self.root / "home" / "dips.db")
        self.assertEqual(cwd, self.project)


if __name__ == "__main__":
    unittest.main()
