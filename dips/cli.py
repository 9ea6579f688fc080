"""Command-line front door for dips.

Parses arguments, configures logging, and runs either a one-shot command
(``init``, ``add``, ``get``) or the interactive session.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .app import bootstrap_state, open_store, run_session
from .config import Settings
from .errors import DipsError, DuplicateDipError, NotInitializedError
from .log import get_logger, setup_logging
from .models import ALL_SCOPES, Dip, DipsFilter
from .scope import context_for_path
from .store import Store

logger = get_logger(__name__)

NO_ITEMS_TEXT = "No items found."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dips",
        description="Keep small notes (dips) scoped to directories and git repositories.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    commands.add_parser("init", help="Create the dips database.")

    add = commands.add_parser("add", help="Store a dip for the current directory.")
    add.add_argument("value", help="Text to store, usually a shell command.")
    add.add_argument("-g", "--group", default=None, help="Optional group name inside the scope.")
    add.add_argument("--global", dest="use_global", action="store_true", help="Store without a directory scope.")
    add.add_argument("--note", default=None, help="Free-form note kept with the dip.")

    get = commands.add_parser("get", help="Print the dips visible from the current directory.")
    get.add_argument("-a", "--all", dest="show_all", action="store_true", help="Print dips from every scope.")
    return parser


def _print_items(dips: list[Dip]) -> None:
    if not dips:
        print(NO_ITEMS_TEXT)
        return
    for dip in dips:
        print(dip.value)


def cmd_init(settings: Settings) -> None:
    Store(settings.database_path).init_schema()
    logger.info("initialized database at %s", settings.database_path)
    print("Dips got initialized.")


def cmd_add(settings: Settings, cwd: Path, args: argparse.Namespace) -> None:
    store = open_store(settings)
    context = None if args.use_global else context_for_path(cwd)
    try:
        store.create_dip(args.value, context=context, group=args.group, note=args.note)
    except DuplicateDipError as exc:
        print(exc)
        return
    print(f"Dip {args.value.strip()} added.")


def cmd_get(settings: Settings, cwd: Path, show_all: bool) -> None:
    store = open_store(settings)
    if show_all:
        _print_items(store.list_dips(DipsFilter(scope_id=ALL_SCOPES)))
        return
    state = bootstrap_state(store, cwd)
    print(f"Scope: {state.scope.label()}")
    _print_items(store.list_dips(DipsFilter(scope_id=state.scope.id)))


def main(argv: list[str] | None = None, cwd: Path | None = None) -> None:
    """Parse CLI arguments and run the requested command.

    ``cwd`` is primarily for tests; when omitted the process working directory
    decides the scope.
    """
    args = build_parser().parse_args(argv)
    settings = Settings.load()
    setup_logging(settings.log_level, settings.log_path)
    if cwd is None:
        cwd = Path.cwd()

    try:
        if args.command == "init":
            cmd_init(settings)
        elif args.command == "add":
            cmd_add(settings, cwd, args)
        elif args.command == "get":
            cmd_get(settings, cwd, args.show_all)
        else:
            run_session(settings, cwd)
    except NotInitializedError as exc:
        print(exc)
    except DipsError as exc:
        logger.error("%s", exc)
        print(f"dips: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
