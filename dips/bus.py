"""Event bus merging terminal keys, posted events, and an idle tick.

Any thread may ``post``; only the controller thread calls ``next``. A
self-pipe wakes the ``select`` wait so posted events are not delayed until
the next tick.
"""

from __future__ import annotations

import os
import select
import time
from collections.abc import Callable
from queue import Empty, SimpleQueue

from .events import Event, Tick
from .input import has_pending_input, read_key
from .keymap import translate_key
from .log import get_logger
from .state import AppState

logger = get_logger(__name__)

DEFAULT_TICK_SECONDS = 0.2


class EventBus:
    """Multi-producer, single-consumer source of controller events."""

    def __init__(
        self,
        stdin_fd: int | None,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        key_reader: Callable[[int], str] = read_key,
    ) -> None:
        self.stdin_fd = stdin_fd
        self.tick_seconds = tick_seconds
        self._read_key = key_reader
        self._queue: SimpleQueue[Event] = SimpleQueue()
        self._wake_r, self._wake_w = os.pipe()
        os.set_blocking(self._wake_r, False)
        os.set_blocking(self._wake_w, False)
        self._skip_next_lf = False
        self._closed = False

    def post(self, event: Event) -> None:
        """Queue an event from any thread and wake the consumer."""
        self._queue.put(event)
        if self._closed:
            return
        try:
            os.write(self._wake_w, b"\0")
        except OSError:
            # A full pipe already wakes the consumer; after close nobody listens.
            pass

    def _drain_wake(self) -> None:
        while True:
            try:
                if not os.read(self._wake_r, 4096):
                    return
            except BlockingIOError:
                return

    def _normalize_key(self, key: str) -> str | None:
        """Fold CR/LF variants into ``ENTER``; a CR-LF pair counts once."""
        if self._skip_next_lf and key == "ENTER_LF":
            self._skip_next_lf = False
            return None
        if key == "ENTER_CR":
            self._skip_next_lf = True
            return "ENTER"
        self._skip_next_lf = False
        if key == "ENTER_LF":
            return "ENTER"
        return key

    def _key_event(self, state: AppState) -> Event | None:
        assert self.stdin_fd is not None
        key = self._read_key(self.stdin_fd)
        if not key:
            return None
        normalized = self._normalize_key(key)
        if normalized is None:
            return None
        return translate_key(normalized, state)

    def next(self, state: AppState) -> Event:
        """Block until a posted event, a mapped key, or the idle tick."""
        deadline = time.monotonic() + self.tick_seconds
        while True:
            try:
                return self._queue.get_nowait()
            except Empty:
                pass

            if self.stdin_fd is not None and has_pending_input():
                event = self._key_event(state)
                if event is not None:
                    return event
                continue

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return Tick()
            fds = [self._wake_r]
            if self.stdin_fd is not None:
                fds.append(self.stdin_fd)
            try:
                ready, _, _ = select.select(fds, [], [], remaining)
            except InterruptedError:
                continue
            if not ready:
                return Tick()
            if self._wake_r in ready:
                self._drain_wake()
            if self.stdin_fd is not None and self.stdin_fd in ready:
                event = self._key_event(state)
                if event is not None:
                    return event

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for fd in (self._wake_r, self._wake_w):
            try:
                os.close(fd)
            except OSError:
                logger.debug("wake pipe fd %s already closed", fd)
