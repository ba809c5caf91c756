"""Merge a file's current source lines with its indexed annotations."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from optview.errors import SourceReadError
from optview.source import SourceFile

if TYPE_CHECKING:
    from optview.index import Annotation, AnnotationIndex


@dataclass
class MergedLine:
    number: int
    content: str
    info: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"number": self.number, "content": self.content, "info": list(self.info)}


@dataclass
class MergedView:
    """Every physical line of a file with the messages recorded for it."""

    path: str
    abs_path: str
    lines: list[MergedLine] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "absPath": self.abs_path,
            "lines": [line.to_dict() for line in self.lines],
        }


def merge_lines(
    lines: Sequence[str],
    annotations: Sequence[Annotation],
    message: Callable[[Annotation], str],
) -> list[MergedLine]:
    """Walk ``lines`` and the sorted ``annotations`` together in one pass.

    Annotations numbered below the current line are skipped; those equal to
    it are attached in order. Numbers are matched as-is, so a file edited
    since the log was written gets notes on shifted lines.
    """
    merged: list[MergedLine] = []
    cursor = 0
    count = len(annotations)

    for i, content in enumerate(lines):
        number = i + 1
        while cursor < count and annotations[cursor].line < number:
            cursor += 1
        info: list[str] = []
        while cursor < count and annotations[cursor].line == number:
            info.append(message(annotations[cursor]))
            cursor += 1
        merged.append(MergedLine(number, content, info))

    return merged


def merge_view(index: AnnotationIndex, path: str) -> MergedView:
    """Build the merged view for ``path``.

    Raises ``NotFound`` if the index never saw ``path`` and
    ``SourceReadError`` if the file cannot be read now.
    """
    entry = index.get(path)
    try:
        source = SourceFile(Path(entry.abs_path))
    except OSError as exc:
        raise SourceReadError(entry.path, entry.abs_path, exc) from exc

    return MergedView(
        path=entry.path,
        abs_path=entry.abs_path,
        lines=merge_lines(source.lines, entry.annotations, index.message),
    )
