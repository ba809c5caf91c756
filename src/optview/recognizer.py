"""Recognize compiler diagnostic lines of the form ``path:line[:col]: message``.

Examples of accepted lines::

    ./main.go:12:6: can inline add
    C:\\work\\abc.go:688: cannot inline run: function too complex
    /src/pkg/x.go:40:13: &buf escapes to heap

Anything else (noise, tab-indented continuation lines) is skipped.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Callable
from dataclasses import dataclass

from optview.source import ByteRange

AUTOGENERATED = "<autogenerated>"

# Lines shorter than this cannot hold a diagnostic.
_MIN_LENGTH = 3
# The path separator search starts here so a drive letter (``C:``) is kept.
_SEARCH_OFFSET = 2

_INT_RE = re.compile(rb"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

PathPolicy = Callable[[str], str]


def identity_path(path: str) -> str:
    return path


def fold_case_path(path: str) -> str:
    """Lower-case a path, for case-insensitive filesystems."""
    return path.lower()


def platform_path_policy(platform: str | None = None) -> PathPolicy:
    """Pick the path policy for a platform (default: the running one)."""
    platform = sys.platform if platform is None else platform
    if platform.startswith(("win32", "cygwin")):
        return fold_case_path
    return identity_path


@dataclass(frozen=True)
class RecognizedLine:
    """One diagnostic: normalized path, line number and message range."""

    path: str
    line: int
    message: ByteRange


def parse_line_number(raw: bytes) -> int:
    """Parse a decimal line number; anything malformed becomes 0."""
    if _INT_RE.fullmatch(raw) is None:
        return 0
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return 0
    return value


def recognize(
    data: bytes,
    start: int,
    end: int,
    *,
    normalize: PathPolicy = identity_path,
    sentinel: str = AUTOGENERATED,
) -> RecognizedLine | None:
    """Classify ``data[start:end]``; return the diagnostic or None for noise."""
    if end - start < _MIN_LENGTH:
        return None
    if data[start] == 0x09:  # tab: continuation of the previous diagnostic
        return None

    first = data.find(b":", start + _SEARCH_OFFSET, end)
    if first < 0:
        return None
    second = data.find(b":", first + 1, end)
    if second < 0:
        return None
    space = data.find(b" ", second + 1, end)
    if space < 0:
        return None

    path = normalize(data[start:first].decode("utf-8", errors="replace"))
    if path == sentinel:
        return None

    return RecognizedLine(
        path=path,
        line=parse_line_number(data[first + 1 : second]),
        message=ByteRange(space + 1, end),
    )
