"""Split a raw diagnostic log into physical lines without copying it."""

from __future__ import annotations

from collections.abc import Iterator


def iter_lines(data: bytes) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` offsets of each line, ``end`` excluding the ``\\n``.

    The last line need not be terminated. A trailing line feed does not
    produce an extra empty line.
    """
    start = 0
    size = len(data)
    while start < size:
        end = data.find(b"\n", start)
        if end < 0:
            end = size
        yield start, end
        start = end + 1


class LineScanner:
    """Restartable line sequence over one buffer."""

    def __init__(self, data: bytes) -> None:
        self.data = data

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return iter_lines(self.data)

    def lines(self) -> list[tuple[int, int]]:
        return list(iter_lines(self.data))
