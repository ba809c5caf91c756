"""Pygments syntax highlighting for source lines printed to a terminal."""

from __future__ import annotations

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound


def highlight_lines(filename: str, lines: list[str]) -> list[str]:
    """Highlight ``lines`` as one document; unknown file types come back as-is."""
    try:
        lexer = get_lexer_for_filename(filename, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return list(lines)

    colored = highlight("\n".join(lines), lexer, TerminalFormatter()).split("\n")
    # Formatters may drop or add a trailing empty line; keep the line count.
    if len(colored) < len(lines):
        colored.extend(lines[len(colored):])
    return colored[: len(lines)]
