"""Tests for key token translation across focus areas and pages."""

from __future__ import annotations

import unittest

from dips.events import (
    ChooseScope,
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
from dips.keymap import KeyComboBinding, KeyComboRegistry, translate_key
from dips.models import GLOBAL_SCOPE
from dips.state import (
    FOCUS_PROMPT,
    PAGE_HELP,
    PAGE_SCOPES,
    SEARCH_COMMIT,
    AppState,
    DipsPage,
    HelpPage,
    InputPrompt,
    MessagePrompt,
    ScopesPage,
    SearchPrompt,
    SplashPage,
)


def _state(page=None, prompt=None, focus=None, back_page=None) -> AppState:
    state = AppState()
    state.ui.page = page if page is not None else DipsPage(scope=GLOBAL_SCOPE)
    if prompt is not None:
        state.ui.prompt = prompt
    if focus is not None:
        state.ui.focus = focus
    state.ui.back_page = back_page
    return state


class KeyComboRegistryTests(unittest.TestCase):
    def test_later_binding_overrides_same_combo(self) -> None:
        registry = KeyComboRegistry().register_bindings(
            KeyComboBinding(("x",), lambda: Quit()),
            KeyComboBinding(("x", "y"), NavigateBack),
        )

        self.assertEqual(registry.dispatch("x"), NavigateBack())
        self.assertEqual(registry.dispatch("y"), NavigateBack())
        self.assertIsNone(registry.dispatch("z"))


class GlobalLayerTests(unittest.TestCase):
    def test_ctrl_c_quits_from_every_focus_and_page(self) -> None:
        states = [
            _state(),
            _state(page=ScopesPage()),
            _state(page=HelpPage()),
            _state(page=SplashPage()),
            _state(prompt=InputPrompt(buffer="add x"), focus=FOCUS_PROMPT),
            _state(prompt=SearchPrompt(), focus=FOCUS_PROMPT),
        ]
        for state in states:
            with self.subTest(page=state.ui.page, focus=state.ui.focus):
                self.assertEqual(translate_key("CTRL_C", state), Quit())


class PageLayerTests(unittest.TestCase):
    def test_dips_page_bindings(self) -> None:
        state = _state()

        self.assertEqual(translate_key("j", state), MoveCursor(1))
        self.assertEqual(translate_key("DOWN", state), MoveCursor(1))
        self.assertEqual(translate_key("k", state), MoveCursor(-1))
        self.assertEqual(translate_key("UP", state), MoveCursor(-1))
        self.assertEqual(translate_key("?", state), Navigate(PAGE_HELP))
        self.assertEqual(translate_key(":", state), PromptFocus(PROMPT_INPUT))
        self.assertEqual(translate_key("/", state), PromptFocus(PROMPT_SEARCH))
        self.assertEqual(translate_key("d", state), RequestDelete())
        self.assertEqual(translate_key("s", state), Navigate(PAGE_SCOPES))
        self.assertIsNone(translate_key("x", state))
        self.assertIsNone(translate_key("ENTER", state))

    def test_escape_without_back_page_or_prompt_state_is_ignored(self) -> None:
        self.assertIsNone(translate_key("ESC", _state()))

    def test_escape_navigates_back_when_page_is_remembered(self) -> None:
        state = _state(back_page=ScopesPage())

        self.assertEqual(translate_key("ESC", state), NavigateBack())

    def test_escape_clears_committed_search_or_message_first(self) -> None:
        committed = _state(prompt=SearchPrompt(buffer="git", phase=SEARCH_COMMIT), back_page=ScopesPage())
        message = _state(prompt=MessagePrompt(text="oops"), back_page=ScopesPage())

        self.assertEqual(translate_key("ESC", committed), PromptDefocus())
        self.assertEqual(translate_key("ESC", message), PromptDefocus())

    def test_escape_clears_filter_kept_on_page(self) -> None:
        state = _state(page=DipsPage(scope=GLOBAL_SCOPE, search="git"), back_page=ScopesPage())

        self.assertEqual(translate_key("ESC", state), PromptDefocus())

    def test_home_and_end_jump_to_list_edges(self) -> None:
        state = _state(page=ScopesPage(ids=["a", "b", "c"], cursor=1))

        self.assertEqual(translate_key("HOME", state), MoveCursor(-3))
        self.assertEqual(translate_key("END", state), MoveCursor(3))
        self.assertIsNone(translate_key("END", _state()))

    def test_scopes_page_bindings(self) -> None:
        state = _state(page=ScopesPage())

        self.assertEqual(translate_key("ENTER", state), ChooseScope())
        self.assertEqual(translate_key("g", state), ChooseScope(use_global=True))
        self.assertEqual(translate_key("j", state), MoveCursor(1))
        self.assertEqual(translate_key("d", state), RequestDelete())
        self.assertIsNone(translate_key("s", state))

    def test_help_page_accepts_only_escape(self) -> None:
        state = _state(page=HelpPage())

        self.assertEqual(translate_key("ESC", state), NavigateBack())
        for key in ("j", "k", "?", ":", "/", "d", "ENTER", "q"):
            with self.subTest(key=key):
                self.assertIsNone(translate_key(key, state))


class PromptLayerTests(unittest.TestCase):
    def test_prompt_focus_routes_editing_keys(self) -> None:
        state = _state(prompt=InputPrompt(), focus=FOCUS_PROMPT)

        self.assertEqual(translate_key("ESC", state), PromptDefocus())
        self.assertEqual(translate_key("BACKSPACE", state), PromptBackspace())
        self.assertEqual(translate_key("CTRL_U", state), PromptClear())
        self.assertEqual(translate_key("ENTER", state), PromptSubmit())
        self.assertEqual(translate_key("j", state), PromptInput("j"))
        self.assertEqual(translate_key("?", state), PromptInput("?"))
        self.assertEqual(translate_key("é", state), PromptInput("é"))
        self.assertIsNone(translate_key("UP", state))
        self.assertIsNone(translate_key("\t", state))


if __name__ == "__main__":
    unittest.main()
