"""Exception types shared by the store, resolver, and CLI layers."""

from __future__ import annotations


class DipsError(Exception):
    """Base class for errors whose message is safe to show to the user."""


class StoreError(DipsError):
    """A storage operation failed."""


class DuplicateDipError(StoreError):
    """The value already exists for the same scope and group."""

    def __init__(self, value: str) -> None:
        super().__init__(f"{value} is already added in this context.")
        self.value = value


class NotInitializedError(DipsError):
    """The database file has not been created yet."""

    def __init__(self) -> None:
        super().__init__("Dips is not initialized. Please run `dips init`")


class ContextPathError(DipsError):
    """The working directory used for scoping does not exist."""
