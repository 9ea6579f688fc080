"""Interactive session wiring.

Bootstrap (store check, scope resolution) runs before the terminal enters
raw mode so failures print normally. The loop then renders, waits for one
bus event, and hands it to the controller until the mode becomes quit.
"""

from __future__ import annotations

import os
import shutil
import sys
from collections.abc import Callable
from pathlib import Path

from .bus import EventBus
from .config import Settings
from .controller import Controller
from .dispatcher import QueryDispatcher
from .errors import DipsError, NotInitializedError
from .events import Navigate
from .log import get_logger
from .render import build_frame, draw_frame
from .scope import context_for_path, resolve_scope
from .state import PAGE_DIPS, AppState
from .store import Store
from .terminal import TerminalController

logger = get_logger(__name__)


def open_store(settings: Settings) -> Store:
    """Open the configured database, failing when ``dips init`` never ran."""
    if not settings.database_exists():
        raise NotInitializedError()
    store = Store(settings.database_path)
    store.check()
    return store


def bootstrap_state(store: Store, cwd: Path) -> AppState:
    context = context_for_path(cwd)
    scope = resolve_scope(store, context)
    logger.info("session scope for %s: %s", context.path, scope.label())
    return AppState(scope=scope, context=context)


def run_loop(
    controller: Controller,
    bus: EventBus,
    settings: Settings,
    draw: Callable[[list[str], bool], None] = draw_frame,
) -> None:
    """Render and apply events until the controller leaves the running mode."""
    last_frame: list[str] | None = None
    last_size: tuple[int, int] | None = None
    while controller.state.is_running():
        term = shutil.get_terminal_size((80, 24))
        size = (term.columns, term.lines)
        # The last column is left free so the bottom-right cell never scrolls.
        frame = build_frame(
            controller.state,
            max(1, term.columns - 1),
            term.lines,
            style=settings.style,
            no_color=settings.no_color,
        )
        if frame != last_frame or size != last_size:
            draw(frame, size != last_size)
            last_frame = frame
            last_size = size
        controller.apply(bus.next(controller.state))


def run_session(settings: Settings, cwd: Path) -> None:
    """Run one interactive session rooted at ``cwd``."""
    store = open_store(settings)
    state = bootstrap_state(store, cwd)

    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    if not os.isatty(stdin_fd) or not os.isatty(stdout_fd):
        raise DipsError("The interactive view needs a terminal. Use `dips get` to print dips.")

    bus = EventBus(stdin_fd, tick_seconds=settings.tick_ms / 1000.0)
    dispatcher = QueryDispatcher(store, bus.post)
    controller = Controller(state, dispatcher.submit, bus.post)
    terminal = TerminalController(stdin_fd, stdout_fd)

    bus.post(Navigate(PAGE_DIPS))
    logger.debug("entering interactive session")
    try:
        with terminal.raw_mode():
            run_loop(controller, bus, settings)
    finally:
        bus.close()
    logger.debug("interactive session finished")
