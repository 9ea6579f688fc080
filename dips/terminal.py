"""Raw tty session for the interactive browser.

Entering switches to the alternate screen with the cursor hidden and
auto-wrap off; leaving undoes all three and restores the saved tty modes.
"""

from __future__ import annotations

import contextlib
import os
import termios
import tty

ENTER_SEQUENCE = b"\x1b[?1049h\x1b[?25l\x1b[?7l"
LEAVE_SEQUENCE = b"\x1b[?7h\x1b[?25h\x1b[?1049l"


class TerminalController:
    """Raw-mode switch for one session; restore always uses the state seen at construction."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._active = False

    def enable_tui_mode(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_SEQUENCE)
        self._active = True

    def disable_tui_mode(self) -> None:
        if not self._active:
            return
        self._active = False
        os.write(self.stdout_fd, LEAVE_SEQUENCE)
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_tui_mode()
            yield self
        finally:
            self.disable_tui_mode()
