"""Application controller: the only writer of ``AppState``.

``apply`` handles one event at a time. Storage work leaves through the
dispatcher and comes back later as ``QueryCompleted``/``QueryFailed`` events,
which may describe a page the user has already left.
"""

from __future__ import annotations

from collections.abc import Callable

from .events import (
    AddDip,
    AttachTag,
    ChooseScope,
    Command,
    CommandIssued,
    CreateDip,
    DeleteDip,
    DipCreated,
    DipRemoved,
    DipsLoaded,
    DipTagged,
    Event,
    FetchDips,
    FetchScopes,
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
    Query,
    QueryCompleted,
    QueryFailed,
    QueryResult,
    Quit,
    RemoveDip,
    RequestDelete,
    ScopesLoaded,
    TagDip,
    Tick,
)
from .log import get_logger
from .models import GLOBAL_SCOPE, ContextScope
from .state import (
    FOCUS_PAGE,
    FOCUS_PROMPT,
    MODE_QUIT,
    PAGE_DIPS,
    PAGE_HELP,
    PAGE_SCOPES,
    PAGE_SPLASH,
    SEARCH_ACTIVE,
    SEARCH_COMMIT,
    SEVERITY_DANGER,
    SEVERITY_INFO,
    AppState,
    ConfirmPrompt,
    DefaultPrompt,
    DipsPage,
    HelpPage,
    InputPrompt,
    MessagePrompt,
    NavPrompt,
    Page,
    ScopesPage,
    SearchPrompt,
    SplashPage,
    active_search,
    clamp_cursor,
    move_cursor,
)

logger = get_logger(__name__)

NOT_APPLICABLE_MESSAGE = "Typing is not applicable in this mode."
INVALID_SUBMIT_MESSAGE = "Invalid submit state."
CONFIRM_ONLY_Y_MESSAGE = 'Only "y" confirms. Nothing was changed.'
MALFORMED_COMMAND_MESSAGE = 'Commands look like "<command> <argument>", e.g. "add git status".'
NO_SELECTION_MESSAGE = "No dip selected."
SCOPES_READ_ONLY_MESSAGE = "Scopes cannot be deleted."
QUIT_VERBS = frozenset({"q", "quit"})


class Controller:
    """State machine driven by bus events."""

    def __init__(
        self,
        state: AppState,
        submit: Callable[[Query], None],
        post: Callable[[Event], None],
    ) -> None:
        self.state = state
        self._submit = submit
        self._post = post
        self._last_request_id = 0

    # -- plumbing ---------------------------------------------------------------

    def _next_request_id(self) -> int:
        self._last_request_id += 1
        return self._last_request_id

    def _set_message(self, text: str, severity: str = SEVERITY_DANGER) -> None:
        self.state.ui.prompt = MessagePrompt(text=text, severity=severity)
        self.state.ui.focus = FOCUS_PAGE

    def _reset_prompt(self) -> None:
        ui = self.state.ui
        ui.focus = FOCUS_PAGE
        ui.prompt = NavPrompt() if isinstance(ui.page, HelpPage) else DefaultPrompt()

    def refresh_page(self) -> None:
        """Request fresh data for the active page, honoring the live search."""
        page = self.state.ui.page
        search = active_search(self.state.ui)
        request_id = self._next_request_id()
        if isinstance(page, DipsPage):
            page.request_id = request_id
            self._submit(FetchDips(request_id=request_id, scope_id=page.scope.id, search=search))
        elif isinstance(page, ScopesPage):
            page.request_id = request_id
            self._submit(FetchScopes(request_id=request_id, search=search))

    # -- event entry point --------------------------------------------------------

    def apply(self, event: Event) -> None:
        if isinstance(event, Tick):
            return
        if isinstance(event, Quit):
            self.state.mode = MODE_QUIT
        elif isinstance(event, Navigate):
            self.navigate(event.target)
        elif isinstance(event, NavigateBack):
            self.navigate_back()
        elif isinstance(event, MoveCursor):
            page = self.state.ui.page
            if isinstance(page, (DipsPage, ScopesPage)):
                move_cursor(page, event.delta)
        elif isinstance(event, PromptFocus):
            self.focus_prompt(event.mode)
        elif isinstance(event, PromptDefocus):
            self.defocus_prompt()
        elif isinstance(event, PromptInput):
            self.prompt_input(event.char)
        elif isinstance(event, PromptBackspace):
            self.prompt_backspace()
        elif isinstance(event, PromptClear):
            self.prompt_clear()
        elif isinstance(event, PromptSubmit):
            self.prompt_submit()
        elif isinstance(event, RequestDelete):
            self.request_delete()
        elif isinstance(event, ChooseScope):
            self.choose_scope(event.use_global)
        elif isinstance(event, CommandIssued):
            self.execute_command(event.command)
        elif isinstance(event, QueryCompleted):
            self.query_completed(event.query, event.result)
        elif isinstance(event, QueryFailed):
            self.query_failed(event.query, event.message)
        else:
            raise TypeError(f"unknown event: {event!r}")

    # -- navigation ---------------------------------------------------------------

    def _initial_page(self, target: str) -> Page:
        if target == PAGE_DIPS:
            return DipsPage(scope=self.state.scope)
        if target == PAGE_SCOPES:
            return ScopesPage()
        if target == PAGE_HELP:
            return HelpPage()
        if target == PAGE_SPLASH:
            return SplashPage()
        raise ValueError(f"unknown page: {target!r}")

    def navigate(self, target: str) -> None:
        ui = self.state.ui
        if not isinstance(ui.page, SplashPage):
            ui.back_page = ui.page
        ui.page = self._initial_page(target)
        self._reset_prompt()
        self.refresh_page()

    def navigate_back(self) -> None:
        """Return to the remembered page; without one this is a no-op."""
        ui = self.state.ui
        back = ui.back_page
        if back is None:
            logger.debug("navigate back requested with no remembered page")
            return
        ui.back_page = None
        if isinstance(back, DipsPage):
            ui.page = DipsPage(scope=back.scope, cursor=back.cursor, search=back.search)
        elif isinstance(back, ScopesPage):
            ui.page = ScopesPage(cursor=back.cursor, search=back.search)
        else:
            ui.page = self._initial_page(back.kind)
        self._reset_prompt()
        self.refresh_page()

    def choose_scope(self, use_global: bool) -> None:
        page = self.state.ui.page
        if not isinstance(page, ScopesPage):
            return
        if use_global:
            self.state.scope = GLOBAL_SCOPE
        else:
            scope_id = page.highlighted_id()
            scope = self.state.data.scopes.get(scope_id) if scope_id is not None else None
            if scope is None:
                return
            self.state.scope = ContextScope(scope)
        self.navigate(PAGE_DIPS)

    # -- prompt -------------------------------------------------------------------

    def _set_page_search(self, search: str) -> None:
        page = self.state.ui.page
        if isinstance(page, (DipsPage, ScopesPage)):
            page.search = search

    def focus_prompt(self, mode: str) -> None:
        ui = self.state.ui
        before = active_search(ui)
        if mode == PROMPT_SEARCH:
            ui.prompt = SearchPrompt()
            # A new search starts from the unfiltered list.
            self._set_page_search("")
        elif mode == PROMPT_INPUT:
            ui.prompt = InputPrompt()
        else:
            raise ValueError(f"unknown prompt mode: {mode!r}")
        ui.focus = FOCUS_PROMPT
        if active_search(ui) != before:
            self.refresh_page()

    def defocus_prompt(self) -> None:
        """Esc: leave the prompt; a search prompt or a bare page drops the filter.

        A message shown on the page is dismissed first and keeps the filter.
        """
        ui = self.state.ui
        before = active_search(ui)
        prompt = ui.prompt
        if isinstance(prompt, SearchPrompt) or (ui.focus == FOCUS_PAGE and not isinstance(prompt, MessagePrompt)):
            self._set_page_search("")
        self._reset_prompt()
        if active_search(ui) != before:
            self.refresh_page()

    def prompt_input(self, char: str) -> None:
        prompt = self.state.ui.prompt
        if isinstance(prompt, (InputPrompt, ConfirmPrompt)):
            prompt.buffer += char
        elif isinstance(prompt, SearchPrompt):
            prompt.buffer += char
            if prompt.phase == SEARCH_ACTIVE:
                self.refresh_page()
        else:
            self._set_message(NOT_APPLICABLE_MESSAGE)

    def prompt_backspace(self) -> None:
        prompt = self.state.ui.prompt
        if isinstance(prompt, (InputPrompt, ConfirmPrompt)):
            prompt.buffer = prompt.buffer[:-1]
        elif isinstance(prompt, SearchPrompt):
            prompt.buffer = prompt.buffer[:-1]
            if prompt.phase == SEARCH_ACTIVE:
                self.refresh_page()
        else:
            self._set_message(NOT_APPLICABLE_MESSAGE)

    def prompt_clear(self) -> None:
        prompt = self.state.ui.prompt
        if isinstance(prompt, (InputPrompt, ConfirmPrompt)):
            prompt.buffer = ""
        elif isinstance(prompt, SearchPrompt):
            had_text = bool(prompt.buffer)
            prompt.buffer = ""
            if had_text and prompt.phase == SEARCH_ACTIVE:
                self.refresh_page()
        else:
            self._set_message(NOT_APPLICABLE_MESSAGE)

    def prompt_submit(self) -> None:
        prompt = self.state.ui.prompt
        if isinstance(prompt, SearchPrompt):
            # The live query already fetched; Enter only makes it stick.
            self._set_page_search(prompt.buffer)
            prompt.phase = SEARCH_COMMIT
            self.state.ui.focus = FOCUS_PAGE
        elif isinstance(prompt, InputPrompt):
            self._submit_command_line(prompt.buffer)
        elif isinstance(prompt, ConfirmPrompt):
            if prompt.buffer == "y":
                self._reset_prompt()
                self._post(CommandIssued(prompt.pending))
            else:
                self._set_message(CONFIRM_ONLY_Y_MESSAGE)
        elif isinstance(prompt, (DefaultPrompt, NavPrompt, MessagePrompt)):
            self._set_message(INVALID_SUBMIT_MESSAGE)
        else:
            raise TypeError(f"unknown prompt: {prompt!r}")

    def _submit_command_line(self, line: str) -> None:
        if line.strip() in QUIT_VERBS:
            self.state.mode = MODE_QUIT
            return
        verb, sep, rest = line.partition(" ")
        if not sep:
            self._set_message(MALFORMED_COMMAND_MESSAGE)
            return
        if verb == "add":
            if not rest.strip():
                self._set_message("Nothing to add.")
                return
            self._reset_prompt()
            self._post(CommandIssued(AddDip(rest)))
        elif verb == "tag":
            name = rest.strip()
            page = self.state.ui.page
            dip_id = page.highlighted_id() if isinstance(page, DipsPage) else None
            if dip_id is None:
                self._set_message(NO_SELECTION_MESSAGE)
            elif not name:
                self._set_message("Tag name cannot be empty.")
            else:
                self._reset_prompt()
                self._post(CommandIssued(TagDip(dip_id=dip_id, name=name)))
        else:
            self._set_message(f'Unknown command "{verb}".')

    def request_delete(self) -> None:
        page = self.state.ui.page
        if isinstance(page, ScopesPage):
            self._set_message(SCOPES_READ_ONLY_MESSAGE)
            return
        if not isinstance(page, DipsPage):
            return
        dip_id = page.highlighted_id()
        if dip_id is None:
            self._set_message(NO_SELECTION_MESSAGE)
            return
        dip = self.state.data.dips.get(dip_id)
        value = dip.value if dip is not None else ""
        self.state.ui.prompt = ConfirmPrompt(
            pending=DeleteDip(dip_id=dip_id, value=value),
            question=f'Delete "{value}"? Type y to confirm:',
        )
        self.state.ui.focus = FOCUS_PROMPT

    # -- commands -----------------------------------------------------------------

    def execute_command(self, command: Command) -> None:
        request_id = self._next_request_id()
        if isinstance(command, AddDip):
            query: Query = self._create_query(request_id, command.value)
        elif isinstance(command, DeleteDip):
            query = RemoveDip(request_id=request_id, dip_id=command.dip_id)
        elif isinstance(command, TagDip):
            query = AttachTag(request_id=request_id, dip_id=command.dip_id, name=command.name)
        else:
            raise TypeError(f"unknown command: {command!r}")
        self._submit(query)
        self._reset_prompt()

    def _create_query(self, request_id: int, value: str) -> CreateDip:
        """Add into the shown scope, or the working directory when showing global."""
        page = self.state.ui.page
        if isinstance(page, DipsPage) and not page.scope.is_global:
            return CreateDip(request_id=request_id, value=value, scope_id=page.scope.id)
        return CreateDip(request_id=request_id, value=value, context=self.state.context)

    # -- completions --------------------------------------------------------------

    def query_completed(self, query: Query, result: QueryResult) -> None:
        if isinstance(result, DipsLoaded):
            self._dips_loaded(query, result)
        elif isinstance(result, ScopesLoaded):
            self._scopes_loaded(query, result)
        elif isinstance(result, DipCreated):
            self._dip_created(result)
        elif isinstance(result, DipRemoved):
            self._dip_removed(result)
        elif isinstance(result, DipTagged):
            self.refresh_page()
        else:
            raise TypeError(f"unknown result: {result!r}")

    def query_failed(self, query: Query, message: str) -> None:
        if isinstance(query, (FetchDips, FetchScopes)) and not self._is_current(query):
            logger.debug("ignoring failure of superseded %s %s: %s", type(query).__name__, query.request_id, message)
            return
        logger.warning("%s failed: %s", type(query).__name__, message)
        self._set_message(message)

    def _is_current(self, query: Query) -> bool:
        """Whether ``query`` is the latest fetch of the page on screen."""
        page = self.state.ui.page
        if isinstance(query, FetchDips):
            return (
                isinstance(page, DipsPage)
                and page.request_id == query.request_id
                and page.scope.id == query.scope_id
            )
        if isinstance(query, FetchScopes):
            return isinstance(page, ScopesPage) and page.request_id == query.request_id
        return False

    def _dips_loaded(self, query: Query, result: DipsLoaded) -> None:
        data = self.state.data
        page = self.state.ui.page
        if not self._is_current(query):
            for dip in result.dips:
                data.dips[dip.id] = dip
            logger.debug("dropping stale dips response %s", getattr(query, "request_id", None))
            return
        assert isinstance(page, DipsPage)
        data.dips = {dip.id: dip for dip in result.dips}
        page.ids = [dip.id for dip in result.dips]
        page.cursor = clamp_cursor(page.cursor, len(page.ids))

    def _scopes_loaded(self, query: Query, result: ScopesLoaded) -> None:
        data = self.state.data
        page = self.state.ui.page
        for scope in result.scopes:
            data.scopes[scope.id] = scope
        if not self._is_current(query):
            logger.debug("dropping stale scopes response %s", getattr(query, "request_id", None))
            return
        assert isinstance(page, ScopesPage)
        page.ids = [scope.id for scope in result.scopes]
        page.cursor = clamp_cursor(page.cursor, len(page.ids))

    def _dip_removed(self, result: DipRemoved) -> None:
        if result.deleted == 0:
            logger.debug("dip %s was already gone", result.dip_id)
        self.state.data.dips.pop(result.dip_id, None)
        page = self.state.ui.page
        if isinstance(page, DipsPage) and result.dip_id in page.ids:
            page.ids.remove(result.dip_id)
            page.cursor = clamp_cursor(page.cursor, len(page.ids))
        self.refresh_page()

    def _dip_created(self, result: DipCreated) -> None:
        created = result.created
        page = self.state.ui.page
        if isinstance(page, DipsPage) and page.scope.is_global and created.scope is not None:
            self.state.scope = ContextScope(created.scope)
            page.scope = self.state.scope
            page.ids = []
            page.cursor = 0
        if isinstance(self.state.ui.prompt, DefaultPrompt):
            if created.created_scope and created.scope is not None:
                text = f"Added {created.dip.value} to new scope {created.scope.dir_path}."
            else:
                text = f"Added {created.dip.value}."
            self._set_message(text, SEVERITY_INFO)
        self.refresh_page()
