"""Annotation index: diagnostics grouped per source file, sorted by line.

The index is built in one pass over a raw log and is read-only afterwards,
so any number of concurrent views can share it without locking.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from optview.errors import NotFound
from optview.recognizer import AUTOGENERATED, PathPolicy, identity_path, recognize
from optview.scanner import iter_lines
from optview.source import ByteRange, RawLog

if TYPE_CHECKING:
    from optview.merge import MergedView

_DRIVE_PATH_RE = re.compile(r"^(?:[A-Za-z]:[\\/]|\\\\)")


@dataclass(frozen=True)
class Annotation:
    """One diagnostic message attached to a line of a file."""

    line: int
    message: ByteRange

    def sort_key(self) -> tuple[int, int, int]:
        return (self.line, self.message.start, self.message.end)


@dataclass(frozen=True)
class FileEntry:
    path: str
    abs_path: str


@dataclass(frozen=True)
class FileAnnotations:
    """All annotations for one file, sorted by (line, start, end)."""

    path: str
    abs_path: str
    annotations: tuple[Annotation, ...]

    def __len__(self) -> int:
        return len(self.annotations)

    @property
    def entry(self) -> FileEntry:
        return FileEntry(self.path, self.abs_path)


@dataclass(frozen=True)
class IndexStats:
    files: int
    annotations: int
    zero_line: int


def is_absolute(path: str) -> bool:
    """True for POSIX absolute paths and Windows drive or UNC paths."""
    return os.path.isabs(path) or _DRIVE_PATH_RE.match(path) is not None


def resolve_path(base_dir: str | Path, path: str) -> str:
    """Absolute paths pass through unchanged; relative ones join ``base_dir``."""
    if is_absolute(path):
        return path
    return os.path.normpath(os.path.join(os.fspath(base_dir), path))


class _FileBuilder:
    __slots__ = ("path", "abs_path", "annotations")

    def __init__(self, base_dir: str, path: str) -> None:
        self.path = path
        self.abs_path = resolve_path(base_dir, path)
        self.annotations: list[Annotation] = []

    def freeze(self) -> FileAnnotations:
        self.annotations.sort(key=Annotation.sort_key)
        return FileAnnotations(self.path, self.abs_path, tuple(self.annotations))


class AnnotationIndex:
    """Maps a normalized file path to its sorted annotations.

    Use :meth:`build` to construct one; the instance exposes only read
    operations.
    """

    def __init__(
        self,
        log: RawLog,
        base_dir: str,
        files: dict[str, FileAnnotations],
        normalize: PathPolicy = identity_path,
    ) -> None:
        self.log = log
        self.base_dir = base_dir
        self.normalize = normalize
        self._files = MappingProxyType(files)

    @classmethod
    def build(
        cls,
        log: RawLog,
        base_dir: str | Path | None = None,
        *,
        normalize: PathPolicy = identity_path,
        sentinel: str = AUTOGENERATED,
    ) -> AnnotationIndex:
        """Scan every line of ``log`` and group the diagnostics by file."""
        base = os.path.abspath(os.fspath(base_dir) if base_dir is not None else ".")
        data = log.data
        builders: dict[str, _FileBuilder] = {}

        for start, end in iter_lines(data):
            found = recognize(data, start, end, normalize=normalize, sentinel=sentinel)
            if found is None:
                continue
            builder = builders.get(found.path)
            if builder is None:
                builder = builders[found.path] = _FileBuilder(base, found.path)
            builder.annotations.append(Annotation(found.line, found.message))

        files = {path: builder.freeze() for path, builder in builders.items()}
        return cls(log, base, files, normalize)

    # ── Queries ──────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def list_files(self) -> list[FileEntry]:
        """All indexed files, in the order they first appeared in the log."""
        return [f.entry for f in self._files.values()]

    def get(self, path: str) -> FileAnnotations:
        try:
            return self._files[path]
        except KeyError:
            raise NotFound(path) from None

    def find_by_abs_path(self, abs_path: str) -> FileAnnotations | None:
        """Look a file up by its resolved path, falling back to the logical path."""
        wanted = self.normalize(os.path.normpath(abs_path))
        for f in self._files.values():
            if self.normalize(os.path.normpath(f.abs_path)) == wanted:
                return f
        return self._files.get(self.normalize(abs_path))

    def message(self, annotation: Annotation) -> str:
        return self.log.text(annotation.message)

    def messages(self, path: str) -> list[tuple[int, str]]:
        """``(line, message)`` pairs for one file, in index order."""
        return [(a.line, self.message(a)) for a in self.get(path).annotations]

    def stats(self) -> IndexStats:
        total = 0
        zero = 0
        for f in self._files.values():
            total += len(f.annotations)
            zero += sum(1 for a in f.annotations if a.line == 0)
        return IndexStats(files=len(self._files), annotations=total, zero_line=zero)

    def merged_view(self, path: str) -> MergedView:
        from optview.merge import merge_view

        return merge_view(self, path)
