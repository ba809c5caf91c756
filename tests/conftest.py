"""Shared pytest fixtures for the optview test suite."""

from __future__ import annotations

import pytest

MAIN_GO = (
    "package main\n"
    "\n"
    "func add(a, b int) int { return a + b }\n"
    "\n"
    "func main() {\n"
    "\tprintln(add(1, 2))\n"
    "}\n"
)


@pytest.fixture
def project(tmp_path):
    """A source tree with one Go file and a compiler log for it."""
    src = tmp_path / "main.go"
    src.write_text(MAIN_GO)
    log = tmp_path / "opt.log"
    log.write_text(
        "# example\n"
        "./main.go:3:6: can inline add\n"
        "./main.go:5:6: cannot inline main: function too complex\n"
        "./main.go:6:13: inlining call to add\n"
        "./main.go:6:9: ... argument does not escape\n"
        "\t./main.go:6:9: continuation line\n"
        "<autogenerated>:1: inlining call to runtime.foo\n"
    )
    return tmp_path
