"""Raw diagnostic log buffer, byte ranges into it, and source file access."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO


@dataclass(frozen=True)
class ByteRange:
    """A half-open ``[start, end)`` range within a raw log buffer."""

    start: int
    end: int

    def slice(self, data: bytes) -> bytes:
        return data[self.start : self.end]

    def decode(self, data: bytes) -> str:
        return data[self.start : self.end].decode("utf-8", errors="replace")


class RawLog:
    """The whole diagnostic stream, held once and never copied.

    Everything extracted from the log is kept as a ``ByteRange`` into
    ``data``; text is only materialized when a view asks for it.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    @property
    def data(self) -> bytes:
        return self._data

    def text(self, rng: ByteRange) -> str:
        return rng.decode(self._data)


def read_raw_log(source: str | Path | BinaryIO | None = None) -> RawLog:
    """Read a log file, a binary stream, or stdin (``None`` or ``"-"``)."""
    if source is None or source == "-":
        return RawLog(sys.stdin.buffer.read())
    if isinstance(source, (str, Path)):
        return RawLog(Path(source).read_bytes())
    return RawLog(source.read())


class SourceFile:
    """A source file's current on-disk content, split into physical lines.

    Lines are split on ``\\n`` only: a file ending in a newline has a final
    empty line, and ``\\r`` stays part of the line text.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.content = path.read_bytes().decode("utf-8", errors="replace")
        self.lines = self.content.split("\n")
