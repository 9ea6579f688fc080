"""Key token → semantic event translation.

Two layers: the global force-quit chord is checked first, then the focused
area (page or prompt) picks the table. Help accepts only "go back".
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .events import (
    ChooseScope,
    Event,
    MoveCursor,
    Navigate,
    NavigateBack,
    PromptBackspace,
    PromptClear,
    PromptDefocus,
    PromptFocus,
    PromptInput,
    PromptSubmit,
    PROMPT_INPUT,
    PROMPT_SEARCH,
    Quit,
    RequestDelete,
)
from .state import (
    FOCUS_PROMPT,
    PAGE_HELP,
    PAGE_SCOPES,
    AppState,
    DipsPage,
    HelpPage,
    MessagePrompt,
    ScopesPage,
    SearchPrompt,
    SplashPage,
)

FORCE_QUIT_KEY = "CTRL_C"


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key tokens to a single event factory."""

    combos: tuple[str, ...]
    handler: Callable[[], Event | None]


class KeyComboRegistry:
    """Small key-dispatch table."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[], Event | None]] = {}

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Register one binding, overwriting existing handlers for same combos."""
        for combo in binding.combos:
            self._handlers[combo] = binding.handler
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        for binding in bindings:
            self.register_binding(binding)
        return self

    def dispatch(self, key: str) -> Event | None:
        handler = self._handlers.get(key)
        if handler is None:
            return None
        return handler()


def global_event(key: str) -> Event | None:
    if key == FORCE_QUIT_KEY:
        return Quit()
    return None


def _page_escape(state: AppState) -> Event | None:
    """Esc on a page: drop a committed search or message, else go back."""
    prompt = state.ui.prompt
    page = state.ui.page
    if isinstance(prompt, (SearchPrompt, MessagePrompt)):
        return PromptDefocus()
    if isinstance(page, (DipsPage, ScopesPage)) and page.search:
        return PromptDefocus()
    if state.ui.back_page is not None:
        return NavigateBack()
    return None


def _jump_event(state: AppState, to_end: bool) -> Event | None:
    page = state.ui.page
    if not isinstance(page, (DipsPage, ScopesPage)) or not page.ids:
        return None
    span = len(page.ids)
    return MoveCursor(span if to_end else -span)


def _list_page_registry(state: AppState) -> KeyComboRegistry:
    return KeyComboRegistry().register_bindings(
        KeyComboBinding(("j", "DOWN"), lambda: MoveCursor(1)),
        KeyComboBinding(("k", "UP"), lambda: MoveCursor(-1)),
        KeyComboBinding(("HOME",), lambda: _jump_event(state, to_end=False)),
        KeyComboBinding(("END",), lambda: _jump_event(state, to_end=True)),
        KeyComboBinding(("?",), lambda: Navigate(PAGE_HELP)),
        KeyComboBinding((":",), lambda: PromptFocus(PROMPT_INPUT)),
        KeyComboBinding(("/",), lambda: PromptFocus(PROMPT_SEARCH)),
        KeyComboBinding(("d",), RequestDelete),
        KeyComboBinding(("ESC",), lambda: _page_escape(state)),
    )


def page_event(key: str, state: AppState) -> Event | None:
    page = state.ui.page
    if isinstance(page, HelpPage):
        return NavigateBack() if key == "ESC" else None

    registry = _list_page_registry(state)
    if isinstance(page, DipsPage):
        registry.register_binding(KeyComboBinding(("s",), lambda: Navigate(PAGE_SCOPES)))
    elif isinstance(page, ScopesPage):
        registry.register_bindings(
            KeyComboBinding(("ENTER",), ChooseScope),
            KeyComboBinding(("g",), lambda: ChooseScope(use_global=True)),
        )
    elif not isinstance(page, SplashPage):
        raise TypeError(f"unknown page: {page!r}")
    return registry.dispatch(key)


def prompt_event(key: str) -> Event | None:
    if key == "ESC":
        return PromptDefocus()
    if key == "BACKSPACE":
        return PromptBackspace()
    if key == "CTRL_U":
        return PromptClear()
    if key == "ENTER":
        return PromptSubmit()
    if len(key) == 1 and key.isprintable():
        return PromptInput(key)
    return None


def translate_key(key: str, state: AppState) -> Event | None:
    """Map one key token to an event for the current focus, or ``None``."""
    event = global_event(key)
    if event is not None:
        return event
    if state.ui.focus == FOCUS_PROMPT:
        return prompt_event(key)
    return page_event(key, state)
