"""Shared test helpers for the optview test suite."""

from __future__ import annotations

from optview.index import AnnotationIndex
from optview.source import RawLog


def build(log: bytes | str, base_dir=None, **kwargs) -> AnnotationIndex:
    """Index ``log`` with relative paths resolved against ``base_dir`` (default /work)."""
    if isinstance(log, str):
        log = log.encode()
    return AnnotationIndex.build(RawLog(log), base_dir or "/work", **kwargs)
