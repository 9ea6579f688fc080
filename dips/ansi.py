"""Column-aware helpers for styled terminal rows.

Escape sequences are kept verbatim and never count toward width; wide
characters take two columns.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterator

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8
RESET = "\033[0m"


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``."""
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def _cells(text: str) -> Iterator[tuple[str, int]]:
    """Yield ``(chunk, columns)`` pairs; escapes are zero-width, tabs become spaces."""
    col = 0
    pos = 0
    while pos < len(text):
        match = ANSI_ESCAPE_RE.match(text, pos) if text[pos] == "\x1b" else None
        if match is not None:
            yield match.group(0), 0
            pos = match.end()
            continue
        ch = text[pos]
        width = char_display_width(ch, col)
        yield (" " * width if ch == "\t" else ch), width
        col += width
        pos += 1


def display_width(text: str) -> int:
    """Visible width of ``text`` after dropping escape sequences."""
    return sum(width for _chunk, width in _cells(text))


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    Escapes up to the first cell that no longer fits are kept.
    """
    if max_cols <= 0:
        return ""
    out: list[str] = []
    used = 0
    for chunk, width in _cells(text):
        if used >= max_cols and width:
            break
        if used + width > max_cols:
            break
        out.append(chunk)
        used += width
    return "".join(out)


def fit_ansi_line(text: str, width: int) -> str:
    """Clip to ``width`` columns and pad with spaces up to exactly ``width``."""
    clipped = clip_ansi_line(text, width)
    padding = " " * max(0, width - display_width(clipped))
    if "\x1b" in clipped:
        # Styles must not bleed into the padding or the next row.
        return clipped + RESET + padding
    return clipped + padding


def reverse_video(text: str) -> str:
    """Highlight a row in reverse video, surviving resets inside ``text``."""
    if not text:
        return text
    return "\033[7m" + text.replace(RESET, "\033[0;7m") + RESET
