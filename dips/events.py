"""Event, command, and storage query variants carried on the event bus."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .models import CreatedDip, Dip, RuntimeDirContext, Scope

PROMPT_INPUT = "input"
PROMPT_SEARCH = "search"


# Commands: user intents that end in one storage call.


@dataclass(frozen=True)
class AddDip:
    value: str


@dataclass(frozen=True)
class DeleteDip:
    dip_id: str
    value: str = ""


@dataclass(frozen=True)
class TagDip:
    dip_id: str
    name: str


Command = Union[AddDip, DeleteDip, TagDip]


# Queries: requests executed off the controller thread.


@dataclass(frozen=True)
class FetchDips:
    request_id: int
    scope_id: str | None
    search: str = ""


@dataclass(frozen=True)
class FetchScopes:
    request_id: int
    search: str = ""


@dataclass(frozen=True)
class CreateDip:
    request_id: int
    value: str
    context: RuntimeDirContext | None = None
    scope_id: str | None = None


@dataclass(frozen=True)
class RemoveDip:
    request_id: int
    dip_id: str


@dataclass(frozen=True)
class AttachTag:
    request_id: int
    dip_id: str
    name: str


Query = Union[FetchDips, FetchScopes, CreateDip, RemoveDip, AttachTag]


# Query results.


@dataclass(frozen=True)
class DipsLoaded:
    dips: tuple[Dip, ...]


@dataclass(frozen=True)
class ScopesLoaded:
    scopes: tuple[Scope, ...]


@dataclass(frozen=True)
class DipCreated:
    created: CreatedDip


@dataclass(frozen=True)
class DipRemoved:
    dip_id: str
    deleted: int


@dataclass(frozen=True)
class DipTagged:
    dip_id: str
    name: str


QueryResult = Union[DipsLoaded, ScopesLoaded, DipCreated, DipRemoved, DipTagged]


# Events consumed by the controller.


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Navigate:
    target: str


@dataclass(frozen=True)
class NavigateBack:
    pass


@dataclass(frozen=True)
class MoveCursor:
    delta: int


@dataclass(frozen=True)
class PromptFocus:
    mode: str


@dataclass(frozen=True)
class PromptDefocus:
    pass


@dataclass(frozen=True)
class PromptInput:
    char: str


@dataclass(frozen=True)
class PromptBackspace:
    pass


@dataclass(frozen=True)
class PromptClear:
    pass


@dataclass(frozen=True)
class PromptSubmit:
    pass


@dataclass(frozen=True)
class RequestDelete:
    pass


@dataclass(frozen=True)
class ChooseScope:
    """Open the highlighted scope, or global when ``use_global`` is set."""

    use_global: bool = False


@dataclass(frozen=True)
class CommandIssued:
    command: Command


@dataclass(frozen=True)
class QueryCompleted:
    query: Query
    result: QueryResult


@dataclass(frozen=True)
class QueryFailed:
    query: Query
    message: str


Event = Union[
    Quit,
    Tick,
    Navigate,
    NavigateBack,
    MoveCursor,
    PromptFocus,
    PromptDefocus,
    PromptInput,
    PromptBackspace,
    PromptClear,
    PromptSubmit,
    RequestDelete,
    ChooseScope,
    CommandIssued,
    QueryCompleted,
    QueryFailed,
]
