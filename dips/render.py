"""Frame composition for the interactive session.

``build_frame`` is pure: it turns ``AppState`` into exactly ``height`` rows of
styled text. ``draw_frame`` is the only function that touches the terminal.
"""

from __future__ import annotations

import os
import sys

from . import __version__
from .ansi import ANSI_ESCAPE_RE, fit_ansi_line, reverse_video
from .config import DEFAULT_STYLE
from .highlight import colorize_value, sanitize_terminal_text
from .state import (
    FOCUS_PROMPT,
    SEARCH_ACTIVE,
    SEVERITY_DANGER,
    AppState,
    ConfirmPrompt,
    DefaultPrompt,
    DipsPage,
    HelpPage,
    InputPrompt,
    MessagePrompt,
    NavPrompt,
    ScopesPage,
    SearchPrompt,
    SplashPage,
    clamp_cursor,
)

EMPTY_LIST_TEXT = "No items found."
SELECTED_MARKER = "> "
UNSELECTED_MARKER = "  "

_KEY = "\033[38;5;229m"
_HEADING = "\033[1;38;5;81m"
_DIM = "\033[2m"
_RESET = "\033[0m"
_DANGER = "\033[1;31m"
_INFO = "\033[32m"

HELP_LINES: tuple[str, ...] = (
    f"{_HEADING}Lists{_RESET}",
    f"  {_KEY}j/k{_RESET} or {_KEY}Up/Down{_RESET}  move the highlight",
    f"  {_KEY}Home/End{_RESET}  jump to the first or last row",
    f"  {_KEY}/{_RESET}  search (live); {_KEY}Enter{_RESET} keeps the filter, {_KEY}Esc{_RESET} drops it",
    f"  {_KEY}:{_RESET}  command prompt",
    f"  {_KEY}Ctrl+U{_RESET}  clear the prompt line",
    f"  {_KEY}d{_RESET}  delete the highlighted dip (asks for y)",
    f"  {_KEY}s{_RESET}  browse scopes",
    f"  {_KEY}Esc{_RESET}  go back",
    "",
    f"{_HEADING}Scopes{_RESET}",
    f"  {_KEY}Enter{_RESET}  show dips of the highlighted scope",
    f"  {_KEY}g{_RESET}  show global dips",
    "",
    f"{_HEADING}Commands{_RESET}",
    f"  {_KEY}add <value>{_RESET}  store a dip in the current scope",
    f"  {_KEY}tag <name>{_RESET}  tag the highlighted dip",
    f"  {_KEY}quit{_RESET}  leave dips",
    "",
    f"  {_KEY}Ctrl+C{_RESET}  quit from anywhere",
)


def _header(state: AppState) -> str:
    page = state.ui.page
    if isinstance(page, DipsPage):
        title = f"Scope: {sanitize_terminal_text(page.scope.label())}"
    elif isinstance(page, ScopesPage):
        title = "Scopes"
    elif isinstance(page, HelpPage):
        title = "Help"
    else:
        title = f"dips {__version__}"
    return title


def _dip_row(state: AppState, dip_id: str, selected: bool, style: str, no_color: bool) -> str:
    dip = state.data.dips.get(dip_id)
    if dip is None:
        return ""
    marker = SELECTED_MARKER if selected else UNSELECTED_MARKER
    text = colorize_value(dip.value, style, no_color)
    if dip.tags:
        tags = " ".join(f"#{sanitize_terminal_text(tag)}" for tag in dip.tags)
        text = f"{text}  {tags}" if no_color else f"{text}  {_DIM}{tags}{_RESET}"
    if selected and not no_color:
        return reverse_video(marker + text)
    return marker + text


def _scope_row(state: AppState, scope_id: str, selected: bool, no_color: bool) -> str:
    scope = state.data.scopes.get(scope_id)
    if scope is None:
        return ""
    marker = SELECTED_MARKER if selected else UNSELECTED_MARKER
    text = sanitize_terminal_text(scope.dir_path)
    if scope.git_remote:
        remote = sanitize_terminal_text(scope.git_remote)
        text = f"{text}  {remote}" if no_color else f"{text}  {_DIM}{remote}{_RESET}"
    if selected and not no_color:
        return reverse_video(marker + text)
    return marker + text


def _window(cursor: int, length: int, rows: int) -> range:
    """Indexes to show so that ``cursor`` stays on screen."""
    if rows <= 0 or length <= 0:
        return range(0)
    start = max(0, clamp_cursor(cursor, length) - rows + 1)
    return range(start, min(length, start + rows))


def _body(state: AppState, rows: int, style: str, no_color: bool) -> list[str]:
    page = state.ui.page
    if isinstance(page, (DipsPage, ScopesPage)):
        if not page.ids:
            return [EMPTY_LIST_TEXT]
        out: list[str] = []
        for index in _window(page.cursor, len(page.ids), rows):
            selected = index == page.cursor
            if isinstance(page, DipsPage):
                out.append(_dip_row(state, page.ids[index], selected, style, no_color))
            else:
                out.append(_scope_row(state, page.ids[index], selected, no_color))
        return out
    if isinstance(page, HelpPage):
        if no_color:
            return [ANSI_ESCAPE_RE.sub("", line) for line in HELP_LINES]
        return list(HELP_LINES)
    if isinstance(page, SplashPage):
        loading = "  loading..." if no_color else f"  {_DIM}loading...{_RESET}"
        return ["", "  dips: notes that belong to a directory", "", loading]
    raise TypeError(f"unknown page: {page!r}")


def _hint(state: AppState) -> str:
    page = state.ui.page
    if isinstance(page, ScopesPage):
        return "Enter choose  g global  / search  ? help  Esc back"
    if isinstance(page, DipsPage):
        return ": command  / search  d delete  s scopes  ? help"
    return "Ctrl+C quit"


def prompt_line(state: AppState, no_color: bool = False) -> str:
    """The bottom row for the current prompt variant."""
    prompt = state.ui.prompt
    editing = state.ui.focus == FOCUS_PROMPT
    cursor = "_" if editing else ""
    if isinstance(prompt, InputPrompt):
        return f":{sanitize_terminal_text(prompt.buffer)}{cursor}"
    if isinstance(prompt, SearchPrompt) and prompt.phase == SEARCH_ACTIVE:
        return f"/{sanitize_terminal_text(prompt.buffer)}{cursor}"
    if isinstance(prompt, ConfirmPrompt):
        return f"{sanitize_terminal_text(prompt.question)} {sanitize_terminal_text(prompt.buffer)}{cursor}"
    if isinstance(prompt, MessagePrompt):
        text = sanitize_terminal_text(prompt.text)
        if no_color:
            return text
        color = _DANGER if prompt.severity == SEVERITY_DANGER else _INFO
        return f"{color}{text}{_RESET}"
    page = state.ui.page
    if isinstance(prompt, (SearchPrompt, DefaultPrompt)) and isinstance(page, (DipsPage, ScopesPage)) and page.search:
        suffix = "  (Esc clears)"
        return f"/{sanitize_terminal_text(page.search)}" + (suffix if no_color else f"{_DIM}{suffix}{_RESET}")
    if isinstance(prompt, NavPrompt):
        hint = "Esc back"
    elif isinstance(prompt, (SearchPrompt, DefaultPrompt)):
        hint = _hint(state)
    else:
        raise TypeError(f"unknown prompt: {prompt!r}")
    return hint if no_color else f"{_DIM}{hint}{_RESET}"


def build_frame(
    state: AppState,
    width: int,
    height: int,
    style: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> list[str]:
    """Compose one full screen: header, list body, prompt row."""
    width = max(1, width)
    height = max(2, height)
    body_rows = height - 2

    header = fit_ansi_line(_header(state), width)
    lines = [header if no_color else f"\033[7m{header}{_RESET}"]
    body = _body(state, body_rows, style, no_color)[:body_rows]
    lines.extend(fit_ansi_line(row, width) for row in body)
    lines.extend(" " * width for _ in range(body_rows - len(body)))
    lines.append(fit_ansi_line(prompt_line(state, no_color), width))
    return lines


def draw_frame(lines: list[str], clear: bool = False) -> None:
    """Paint ``lines`` from the top-left corner; ``clear`` wipes leftovers first."""
    out = ("\033[H\033[J" if clear else "\033[H") + "\r\n".join(lines)
    os.write(sys.stdout.fileno(), out.encode("utf-8", errors="replace"))
