"""Error types and terminal rendering of annotated source."""

from __future__ import annotations

from typing import TYPE_CHECKING

from optview.classify import line_tags

if TYPE_CHECKING:
    from optview.merge import MergedLine, MergedView


class OptviewError(Exception):
    """Base class for optview errors."""


class NotFound(OptviewError, KeyError):
    """A path was requested that the index never saw."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(path)

    def __str__(self) -> str:
        return f"not found: {self.path}"


class SourceReadError(OptviewError, OSError):
    """An indexed file could not be read when building its view."""

    def __init__(self, path: str, abs_path: str, cause: OSError) -> None:
        self.path = path
        self.abs_path = abs_path
        self.cause = cause
        super().__init__(cause.errno, f"{abs_path}: {cause.strerror or cause}")

    def __str__(self) -> str:
        return f"{self.abs_path}: {self.cause.strerror or self.cause}"


class ConfigError(OptviewError):
    """Invalid configuration value."""


# ANSI color codes
_TAG_COLORS = {
    "cannot-inline": "\033[1;31m",    # bold red
    "inlining": "\033[1;32m",         # bold green
    "escapes-to-heap": "\033[1;34m",  # bold blue
}
_NOTE = "\033[1;36m"
_BLUE = "\033[1;34m"
_BOLD = "\033[1m"
_RESET = "\033[0m"


class ViewRenderer:
    """Renders a merged view as a gutter listing with notes under each line."""

    def __init__(
        self,
        *,
        color: bool = True,
        only_annotated: bool = False,
        context: int = 0,
        highlight: bool | None = None,
    ) -> None:
        self.color = color
        self.only_annotated = only_annotated
        self.context = max(0, context)
        self.highlight = color if highlight is None else highlight

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def _visible(self, view: MergedView) -> list[bool]:
        if not self.only_annotated:
            return [True] * len(view.lines)
        shown = [False] * len(view.lines)
        for i, line in enumerate(view.lines):
            if line.info:
                lo = max(0, i - self.context)
                hi = min(len(view.lines), i + self.context + 1)
                for k in range(lo, hi):
                    shown[k] = True
        return shown

    def _contents(self, view: MergedView) -> list[str]:
        contents = [line.content for line in view.lines]
        if not self.highlight:
            return contents
        from optview.highlight import highlight_lines

        return highlight_lines(view.abs_path, contents)

    def render(self, view: MergedView) -> str:
        out: list[str] = [
            f"  {self._c(_BLUE)}-->{self._c(_RESET)} {self._c(_BOLD)}{view.abs_path}{self._c(_RESET)}"
        ]
        width = max(4, len(str(len(view.lines))))
        visible = self._visible(view)
        contents = self._contents(view)
        gap = False

        for line, content, show in zip(view.lines, contents, visible):
            if not show:
                gap = True
                continue
            if gap:
                out.append(f"  {self._c(_BLUE)}{'...':>{width}}{self._c(_RESET)}")
                gap = False
            out.append(self._render_line(line, content, width))

        return "\n".join(out)

    def _render_line(self, line: MergedLine, content: str, width: int) -> str:
        tags = line_tags(line.info)
        gutter_color = _TAG_COLORS.get(tags[0], _BLUE) if tags else _BLUE
        rows = [
            f"  {self._c(gutter_color)}{line.number:>{width}} |{self._c(_RESET)} {content}"
        ]
        pad = " " * width
        for message in line.info:
            rows.append(
                f"  {self._c(_BLUE)}{pad} ={self._c(_RESET)} "
                f"{self._c(_NOTE)}note:{self._c(_RESET)} {message}"
            )
        return "\n".join(rows)
