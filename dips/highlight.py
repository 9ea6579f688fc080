"""Shell syntax coloring for dip values.

Dips are almost always shell commands, so they go through Pygments' bash
lexer. Terminal control bytes are neutralized first so a stored value can
never move the cursor or ring the bell.
"""

from __future__ import annotations

import re
from functools import lru_cache

from pygments import highlight as pygments_highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import BashLexer
from pygments.util import ClassNotFound
from pygments.styles import get_style_by_name

from .config import DEFAULT_STYLE
from .log import get_logger

logger = get_logger(__name__)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_LEXER = BashLexer()


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


@lru_cache(maxsize=None)
def _normalize_style(style: str) -> str:
    try:
        get_style_by_name(style)
    except ClassNotFound:
        logger.warning("unknown pygments style %r, using %s", style, DEFAULT_STYLE)
        return DEFAULT_STYLE
    return style


@lru_cache(maxsize=None)
def _formatter_for_style(style: str) -> Terminal256Formatter:
    return Terminal256Formatter(style=_normalize_style(style))


@lru_cache(maxsize=1024)
def colorize_value(value: str, style: str = DEFAULT_STYLE, no_color: bool = False) -> str:
    """Return ``value`` as one styled line (newlines shown as spaces)."""
    text = sanitize_terminal_text(value.replace("\r\n", " ").replace("\n", " ").replace("\r", " "))
    if no_color or not text:
        return text
    rendered = pygments_highlight(text, _LEXER, _formatter_for_style(style))
    return rendered.rstrip("\n")
