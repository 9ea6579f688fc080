"""Session state owned by the controller.

Pages and prompts are small dataclass variants; exactly one of each is active.
Only the controller mutates these objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .models import GLOBAL_SCOPE, ContextScope, Dip, RuntimeDirContext, Scope

MODE_RUNNING = "running"
MODE_QUIT = "quit"

FOCUS_PAGE = "page"
FOCUS_PROMPT = "prompt"

SEARCH_ACTIVE = "active"
SEARCH_COMMIT = "commit"

SEVERITY_INFO = "info"
SEVERITY_DANGER = "danger"

PAGE_SPLASH = "splash"
PAGE_DIPS = "dips"
PAGE_SCOPES = "scopes"
PAGE_HELP = "help"


def clamp_cursor(cursor: int, length: int) -> int:
    """Clamp a list cursor into ``[0, max(0, length - 1)]``."""
    if length <= 0:
        return 0
    return max(0, min(cursor, length - 1))


@dataclass
class SplashPage:
    kind = PAGE_SPLASH


@dataclass
class DipsPage:
    """Dips visible from ``scope``; ``ids`` index into ``DataState.dips``."""

    scope: ContextScope
    cursor: int = 0
    ids: list[str] = field(default_factory=list)
    request_id: int = 0
    # Committed search; kept across prompt changes until Esc or a new search.
    search: str = ""
    kind = PAGE_DIPS

    def highlighted_id(self) -> str | None:
        if not self.ids:
            return None
        return self.ids[clamp_cursor(self.cursor, len(self.ids))]


@dataclass
class ScopesPage:
    cursor: int = 0
    ids: list[str] = field(default_factory=list)
    request_id: int = 0
    search: str = ""
    kind = PAGE_SCOPES

    def highlighted_id(self) -> str | None:
        if not self.ids:
            return None
        return self.ids[clamp_cursor(self.cursor, len(self.ids))]


@dataclass
class HelpPage:
    kind = PAGE_HELP


Page = Union[SplashPage, DipsPage, ScopesPage, HelpPage]
ListPage = Union[DipsPage, ScopesPage]


def move_cursor(page: ListPage, delta: int) -> bool:
    """Move the cursor without wrapping; return whether it changed."""
    if not page.ids:
        return False
    target = clamp_cursor(page.cursor + delta, len(page.ids))
    if target == page.cursor:
        return False
    page.cursor = target
    return True


@dataclass
class DefaultPrompt:
    pass


@dataclass
class NavPrompt:
    """Footer shown while the help page is open."""


@dataclass
class InputPrompt:
    buffer: str = ""


@dataclass
class SearchPrompt:
    buffer: str = ""
    phase: str = SEARCH_ACTIVE


@dataclass
class ConfirmPrompt:
    """Yes/no question guarding ``pending`` (a command from ``dips.events``)."""

    pending: object
    question: str = ""
    buffer: str = ""


@dataclass
class MessagePrompt:
    text: str
    severity: str = SEVERITY_INFO


Prompt = Union[DefaultPrompt, NavPrompt, InputPrompt, SearchPrompt, ConfirmPrompt, MessagePrompt]


def active_search(ui: UiState) -> str:
    """Return the query list fetches should honor.

    A search being typed wins; otherwise the page's committed search applies.
    """
    prompt = ui.prompt
    if isinstance(prompt, SearchPrompt) and prompt.phase == SEARCH_ACTIVE:
        return prompt.buffer
    page = ui.page
    if isinstance(page, (DipsPage, ScopesPage)):
        return page.search
    return ""


@dataclass
class UiState:
    page: Page = field(default_factory=SplashPage)
    prompt: Prompt = field(default_factory=DefaultPrompt)
    focus: str = FOCUS_PAGE
    # One level only: navigating again replaces it, going back clears it.
    back_page: Page | None = None


@dataclass
class DataState:
    """Last fetched rows keyed by id."""

    dips: dict[str, Dip] = field(default_factory=dict)
    scopes: dict[str, Scope] = field(default_factory=dict)


@dataclass
class AppState:
    mode: str = MODE_RUNNING
    ui: UiState = field(default_factory=UiState)
    data: DataState = field(default_factory=DataState)
    scope: ContextScope = GLOBAL_SCOPE
    context: RuntimeDirContext | None = None

    def is_running(self) -> bool:
        return self.mode == MODE_RUNNING
