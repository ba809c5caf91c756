"""Keyword tags used to color-code annotated lines."""

from __future__ import annotations

# (tag, phrase) pairs; a line gets every tag whose phrase occurs in its notes.
LINE_TAGS: tuple[tuple[str, str], ...] = (
    ("cannot-inline", "cannot inline"),
    ("inlining", "inlining call to"),
    ("escapes-to-heap", "escapes to heap"),
)


def line_tags(info: list[str]) -> list[str]:
    if not info:
        return []
    text = "\n".join(info)
    return [tag for tag, phrase in LINE_TAGS if phrase in text]
